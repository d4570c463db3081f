"""
Infrastructure Layer

redis-py adapters, the fill collaborator, the local executor and the
factory that wires them together.
"""
