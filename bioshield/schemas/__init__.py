"""Typed records exchanged between the host ledger and the BioShield core."""
