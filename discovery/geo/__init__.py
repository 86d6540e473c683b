"""
Geographic analytics for the admin dashboard.
"""
