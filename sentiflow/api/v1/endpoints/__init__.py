# sentiflow/api/v1/endpoints/__init__.py
