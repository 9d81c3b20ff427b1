"""machines/ -- Machine Record Store and Machine Service.

Layer rule: machines/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, or auth/.
"""
