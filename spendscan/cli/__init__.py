"""Command-line interface for spendscan.

Usage:
    spendscan scan <document> [--type image|pdf] [--backend service|tesseract]
    spendscan scan <document> --user <id> --save
    spendscan parse <text-file|->
    spendscan classify <text>
    spendscan categories
"""
