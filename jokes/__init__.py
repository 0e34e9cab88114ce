"""jokes/ -- Joke records, their store, and the ownership gate for deletion.

Layer rule: jokes/ imports only stdlib + third-party libraries, plus core/.
It does NOT import from api/, web/, or auth/.
"""
