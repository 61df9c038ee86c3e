"""auth/ -- Credential issuance and verification for the booking portal.

Layer rule: auth/ imports only stdlib + third-party libraries, plus
core.config for Settings. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
