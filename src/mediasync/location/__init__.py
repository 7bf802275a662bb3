from .location_tagger import LocationFix, LocationProvider, LocationTagger

__all__ = ["LocationFix", "LocationProvider", "LocationTagger"]
