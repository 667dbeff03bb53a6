"""
canvaslog CLI

Commands:
- canvaslog append - Validate and append one event
- canvaslog log tail/inspect/verify - Event log operations
- canvaslog replay - Rebuild canvas state from the log
- canvaslog stats - Grouped event statistics
- canvaslog snapshot create/verify - Signed snapshot management
"""
