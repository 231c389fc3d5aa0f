"""
License Transfer Service Django project.
"""
