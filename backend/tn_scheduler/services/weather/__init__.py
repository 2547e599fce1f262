from .service import WeatherService

__all__ = ["WeatherService"]
