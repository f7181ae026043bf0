# services/__init__.py

"""Services built on top of the tracker state"""
