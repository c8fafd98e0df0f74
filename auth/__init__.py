"""auth/ -- Registration, credential verification and session tokens for userauth.

Layer rule: auth/ imports only stdlib + third-party libraries, with one
exception: auth/bootstrap.py reads core.config to wire the object graph.
Every other module receives its configuration as constructor arguments.
"""
