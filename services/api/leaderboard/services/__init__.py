"""Business logic services.

Services hold the ranking rules; routes stay thin and stores stay
free of business logic.
"""
