"""Shared package for the daily site report service.

This package contains code that does not depend on Flask:

- Database models (models.py) - SQLAlchemy declarative models
- Enums (enums.py) - Submission states and deployment choices
- Validation utilities (validation.py, schemas.py) - Form validation and Pydantic schemas
- Utility functions (utils.py) - Storage key construction
"""
