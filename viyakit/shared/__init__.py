# viyakit/shared/__init__.py
