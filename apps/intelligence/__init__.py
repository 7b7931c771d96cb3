"""
AI incident summaries for ticket bodies.
"""
