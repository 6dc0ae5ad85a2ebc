from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (empty = in-process cache)
    redis_url: str = ""

    # Amadeus: flights + hotels
    amadeus_client_id: str = ""
    amadeus_client_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"

    # Hotels.com via RapidAPI
    rapidapi_key: str = ""
    hotels_com_base_url: str = "https://hotels-com-free.p.rapidapi.com"
    hotels_com_host: str = "hotels-com-free.p.rapidapi.com"

    # Google Places: venues
    google_places_api_key: str = ""
    google_places_base_url: str = "https://maps.googleapis.com/maps/api/place"

    # Reddit: public JSON search, no key
    reddit_enabled: bool = True
    reddit_base_url: str = "https://www.reddit.com"
    reddit_user_agent: str = "tripsmith/0.1 (itinerary research)"
    reddit_post_limit: int = 25

    # LLM enrichment
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    enrichment_enabled: bool = True
    enrichment_mode: str = "descriptions_only"
    enrichment_timeout_seconds: float = 30.0

    # Cache TTLs (seconds)
    cache_ttl_flights: int = 15 * 60
    cache_ttl_hotels: int = 30 * 60
    cache_ttl_mentions: int = 24 * 60 * 60
    cache_ttl_places: int = 30 * 24 * 60 * 60
    cache_ttl_itinerary: int = 7 * 24 * 60 * 60

    # Trip limits
    max_trip_days: int = 30

    # Budget split
    budget_food_ratio: float = 0.4
    budget_transport_ratio: float = 0.2
    budget_accommodation_share: float = 0.4

    # Scheduler
    scheduler_enabled: bool = True
    cache_purge_interval_minutes: int = 60

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
