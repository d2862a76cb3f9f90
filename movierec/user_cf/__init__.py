"""User-user collaborative filtering against the remote ratings API.

Core idea:
- Fetch every other user's ratings of the movies the local user has rated
- Score each of those users with Pearson correlation over the shared movies
- Recommend what the single best-matching user liked and the local user has not rated
"""
