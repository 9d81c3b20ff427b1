"""auth/ -- Credential Store and Auth Service for MedMachines.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, or machines/.
api/ and web/ import from auth/, not the other way around.
"""
