"""Competitor Evidence - collects, classifies and scores public web evidence about competing products.

Given a competitor domain, this package builds a priority-ordered list of pages,
fetches them concurrently under a shared time budget, classifies each page into
a fixed evidence-type taxonomy, shortlists a diverse subset, and scores an
accumulated evidence bundle for coverage and confidence.

Components:
- retrieval: target building, parallel fetching, extraction, classification
- selection: diversity-first shortlist
- quality: sufficiency gate
- scoring: deterministic 0-10 coverage score
- pipeline: one collection run end to end
"""
