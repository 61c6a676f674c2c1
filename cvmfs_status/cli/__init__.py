"""
CLI — click commands and terminal rendering.
"""
