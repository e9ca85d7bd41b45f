"""
Sales-enablement content assistant.

Modules:
- core: request orchestration (decide, pick style, render)
- decision: rule cascade that picks the action for a request
- styles: style pattern extraction, catalog and learning progress
- render: vector compositor and placeholder image strategies
- generator: remote generative image strategy (Replicate + OpenAI)
- canvas: small vector drawing surface backed by Pillow
- storage: key-value persistence for the style catalog
- brand: brand defaults and industry tables
- config: environment-driven settings
"""
