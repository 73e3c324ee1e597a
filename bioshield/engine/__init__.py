"""
BioShield Engine — pure decision logic.

Components:
- triggers: first-match parametric trigger evaluation over a snapshot
- scoring: trial risk, approval probability, patent invalidation risk
- calculations: checked premium, payout, share and utilization arithmetic
- validations: coverage, claim and pool parameter checks
"""
