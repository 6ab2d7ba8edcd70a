"""auth/ -- Credential hashing, signed bearer tokens, and request authentication.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/ for
settings in the FastAPI dependency module. It does NOT import from api/ or
books/. api/ imports from auth/, not the other way around.

The password and token modules (passwords, tokens, gate) never read
configuration: the secret, ttl, and clock are always passed in.
"""
