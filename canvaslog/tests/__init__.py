"""
Test suite for canvaslog.

Focus areas:
- Type grammar and payload validation
- Grid snap and collision placement
- Reducer purity and replay determinism
- Log monotonicity, conflicts and hash chain integrity
- Undo/redo inverse law
"""
