"""
Provider Integrations Package
"""
