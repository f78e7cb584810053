"""
Infrastructure Layer

Adapters implementing the domain ports: control plane RPC, Linux block
devices, job state stores and runner log scanning.
"""
