# resources.py
from __future__ import annotations

from typing import Any, Dict, List

# Static partner and local listings. Replace with a partner feed later.


def partner_offers() -> List[Dict[str, Any]]:
    return [
        {
            "id": "partner-1",
            "partner": "Octopus Energy",
            "category": "energy",
            "offer": "100% renewable energy",
            "savings": "£50 credit + cheaper rates",
            "valid_until": "2024-12-31",
            "code": "ZEROZERO50",
            "url": "https://octopus.energy",
        },
        {
            "id": "partner-2",
            "partner": "Lime",
            "category": "transport",
            "offer": "Free unlock codes",
            "savings": "10 free rides worth £15",
            "valid_until": "2024-12-31",
            "code": "LIMEZERO",
            "url": "https://lime.bike",
        },
        {
            "id": "partner-3",
            "partner": "Too Good To Go",
            "category": "food",
            "offer": "Surplus food boxes",
            "savings": "Up to 70% off retail",
            "valid_until": "2024-12-31",
            "code": None,
            "url": "https://toogoodtogo.co.uk",
        },
    ]


def mock_businesses(lat: float, lng: float) -> List[Dict[str, Any]]:
    return [
        {
            "id": "local-1",
            "name": "Green Grocer",
            "category": "grocery",
            "distance": "0.8km",
            "sustainability": "Organic & local produce",
            "savings": "15% off with app",
            "lat": lat,
            "lng": lng,
            "address": "123 Green Street",
        },
        {
            "id": "local-2",
            "name": "Cycle Hub",
            "category": "transport",
            "distance": "1.2km",
            "sustainability": "Bike repairs & rentals",
            "savings": "10% off repairs",
            "lat": lat,
            "lng": lng,
            "address": "456 Cycle Lane",
        },
        {
            "id": "local-3",
            "name": "Eco Café",
            "category": "food",
            "distance": "0.5km",
            "sustainability": "Zero waste, local sourcing",
            "savings": "20% off drinks",
            "lat": lat,
            "lng": lng,
            "address": "789 Sustainable Street",
        },
    ]


def useful_links(locale: str) -> Dict[str, str]:
    base = {
        "Energy Saving Trust": "https://energysavingtrust.org.uk/",
        "Carbon Trust footprint guide": "https://www.carbontrust.com/",
        "Water Quality Portal": "https://www.waterqualitydata.us/",
    }
    if locale == "US":
        base.update({
            "ENERGY STAR": "https://www.energystar.gov/",
            "EPA household carbon calculator": "https://www3.epa.gov/carbon-footprint-calculator/",
        })
    return base
