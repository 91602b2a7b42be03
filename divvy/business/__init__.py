"""
Business Layer

Dividend analysis business logic:
- config: analyzer settings and per-call options
- analysis: the analysis orchestrator
- cli: command line tool
"""
