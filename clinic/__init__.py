"""Clinical application for the careportal backend.

This package contains the models, serializers, request pipeline, views
and route registrations behind the audited clinical API.
"""
