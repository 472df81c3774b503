# sentiflow/core/__init__.py
