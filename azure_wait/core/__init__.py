"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Operator names, operation names, output keys
- exceptions: Custom exception hierarchy
- ingress: Activity input normalisation and client factories
- secrets: Scoped secret providers
- state_store: Azure Blob backed operation state store
"""
