"""
Sheetboard Test Suite

Unit tests for the acquisition pipeline, refresh scheduling, font fitting,
edit mode, settings and terminal presentation.

Test organization:
- unit/ - Unit tests for individual components
- fixtures/ - Sample exports, scripted HTTP sessions and a manual clock
"""
