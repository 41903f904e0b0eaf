"""
Shared Flask extensions.
"""

from flask_wtf.csrf import CSRFProtect

# CSRF protection; API blueprints are exempted in the app factory
csrf = CSRFProtect()
