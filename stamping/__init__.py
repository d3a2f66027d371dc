"""
PDF stamping.

Maps editor coordinates into PDF user space and burns text fields and
signature images into a copy of a base PDF (reportlab overlay + pypdf merge).
"""
