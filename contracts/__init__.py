"""
Python contracts for the matchvm host.

- ``contracts.smashpros``   : the SMSH fungible token
- ``contracts.moneymatchr`` : peer-to-peer wager escrow with consensus payout
- ``contracts.stdlib``      : shared token / access / math libraries
"""
