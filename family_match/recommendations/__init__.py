"""
Family activity recommendation core.

Responsibilities:
- Normalize heterogeneous provider, event and session payloads into
  canonical activity records.
- Score each record against a family profile on age, interests, location,
  schedule, budget and provider quality.
- Blend practical scores with vector similarity, explain each match and
  pick a diverse final list.
"""
