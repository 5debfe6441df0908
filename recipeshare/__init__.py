# recipeshare/__init__.py
