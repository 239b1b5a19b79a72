"""
Grounding-context retrieval for a store chat assistant.

This package loads the store catalog (CSV export or JSON documents),
scores products and FAQ/policy pages against a customer question by term
overlap, and renders the best matches into a compact text block that the
chat handler places ahead of the question. There are no side-effects on
import; catalogs are read lazily on first retrieval.
"""
