# core/__init__.py

"""Daily log store, aggregation and achievements"""
