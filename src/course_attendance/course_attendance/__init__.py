"""Course enrollment and attendance backend.

Organized by feature modules (courses, enrollment, attendance) with a thin
Flask controller layer over service/repository layers.
"""
