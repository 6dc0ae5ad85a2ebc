"""Provider adapters — external data sources behind a uniform search capability.

Modules:
    base                 SearchCriteria, ProviderResult and the ProviderChain
    amadeus_client       Flights and hotels via Amadeus Self-Service
    hotels_com_client    Hotels via the RapidAPI Hotels.com feed
    google_places_client Venues via Google Places text search
    reddit_client        Venue mentions mined from community posts
    static_data          Deterministic static datasets used as chain fallbacks
"""
