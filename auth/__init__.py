"""auth/ -- Credential hashing, pepper rotation and bearer tokens.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/
for the Settings type in the service factory. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
