"""auth/ -- Session authentication and credential handling for punchline.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/.
It does NOT import from api/, web/, or jokes/.
api/ and web/ import from auth/, not the other way around.
"""
