"""Security tests for the Ordira backend

This module contains security-focused tests including:
- Authentication bypass attempts
- Tenant escape/isolation attacks
- Host header spoofing
"""
