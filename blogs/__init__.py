"""blogs/ -- Blog post records and the rules deciding who may see or change them.

Layer rule: blogs/ imports only stdlib, third-party libraries, core/, and
auth.models (for the Identity value). It does NOT import from api/ or web/.
"""
