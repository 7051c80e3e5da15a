"""
Domain services for Thamel Loyalty
"""
