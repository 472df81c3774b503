# sentiflow/services/__init__.py
