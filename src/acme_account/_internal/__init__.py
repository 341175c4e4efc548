"""Modules internal to acme-account.

This package contains modules that are not considered part of the public
API. They may be changed without updating the project's version.

"""
