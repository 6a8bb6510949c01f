"""Weather dashboard backend: OpenWeatherMap proxy, forecast cache and saved cities."""
