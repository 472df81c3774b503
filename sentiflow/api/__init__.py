# sentiflow/api/__init__.py
