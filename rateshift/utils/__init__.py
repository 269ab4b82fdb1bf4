# rateshift/utils/__init__.py
