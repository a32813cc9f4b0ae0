"""
Color wheel extension backend service
"""
