"""
nixon: project-aware command launcher driven by Markdown command catalogs.
"""
