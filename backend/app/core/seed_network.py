"""Built-in Addis Ababa network, used when no network source is configured."""

import copy


def _stop(stop_id, en, am, om, lat, lng, zone, facilities):
    return {
        "id": stop_id,
        "name": {"en": en, "am": am, "om": om},
        "location": {"lat": lat, "lng": lng},
        "zone": zone,
        "facilities": facilities,
    }


def _route(route_id, number, en, am, om, operator, color, stops, first, last, frequency,
           price, distance, duration, status="active"):
    return {
        "id": route_id,
        "routeNumber": number,
        "name": {"en": en, "am": am, "om": om},
        "operator": operator,
        "color": color,
        "stops": stops,
        "schedule": {"firstBus": first, "lastBus": last, "frequency": frequency},
        "price": price,
        "distance": distance,
        "duration": duration,
        "status": status,
    }


STOPS = [
    _stop("meskel-square", "Meskel Square", "መስቀል አደባባይ", "Finfinnee Meskel", 9.0120, 38.7634, "Central",
          ["shelter", "digital_display", "ticket_booth", "security", "step_free"]),
    _stop("piazza", "Piazza (De Gaulle Square)", "ፒያሳ", "Piazza", 9.0336, 38.7369, "Central",
          ["shelter", "digital_display", "shops"]),
    _stop("arat-kilo", "Arat Kilo", "አራት ኪሎ", "Aratti Kilo", 9.0365, 38.7614, "Central",
          ["shelter", "digital_display", "atm", "restroom", "step_free"]),
    _stop("six-kilo", "Six Kilo (Adwa)", "ስድስት ኪሎ", "Jaata Kilo", 9.0158, 38.7891, "Central",
          ["shelter", "digital_display"]),
    _stop("merkato", "Merkato", "መርካቶ", "Merkato", 9.0142, 38.7253, "West",
          ["large_station", "digital_display", "ticket_booth", "shops", "security"]),
    _stop("shiromeda", "Shiromeda", "ሽሮሜዳ", "Shiromeda", 9.0089, 38.7445, "West",
          ["shelter", "digital_display"]),
    _stop("bole", "Bole", "ቦሌ", "Bole", 8.9806, 38.7578, "South",
          ["shelter", "digital_display", "atm"]),
    _stop("bole-airport", "Bole International Airport", "ቦሌ አለም አቀፍ አውሮፕላን ማረፊያ", "Buufata Xayyaaraatti Bole",
          8.9779, 38.7992, "South",
          ["large_station", "digital_display", "ticket_booth", "shops", "wifi", "restroom"]),
    _stop("megenagna", "Megenagna", "መገናኛ", "Megenagna", 8.9889, 38.7889, "South",
          ["shelter", "digital_display"]),
    _stop("cmc", "CMC (Kaliti)", "ሲ.ኤም.ሲ", "CMC", 8.9500, 38.7800, "South",
          ["shelter", "digital_display", "security"]),
    _stop("kazanchis", "Kazanchis", "ካዛንቺስ", "Kazanchis", 9.0267, 38.7756, "Central",
          ["shelter", "digital_display", "atm"]),
    _stop("mexico", "Mexico Square", "ሜክሲኮ አደባባይ", "Finfinnee Mexico", 9.0445, 38.7334, "North",
          ["shelter", "digital_display"]),
    _stop("stadium", "Addis Ababa Stadium", "አዲስ አበባ ስታዲየም", "Istiidiyeemii Addis Ababa", 9.0156, 38.7445,
          "Central", ["shelter", "digital_display"]),
    _stop("legehar", "Legehar (Train Station)", "ለገሃር", "Legehar", 9.0089, 38.7556, "Central",
          ["large_station", "digital_display", "ticket_booth", "shops"]),
    _stop("goro", "Goro", "ጎሮ", "Goro", 8.9778, 38.7334, "South", ["shelter", "digital_display"]),
    _stop("addis-ketema", "Addis Ketema", "አዲስ ከተማ", "Addis Ketema", 9.0267, 38.7445, "Central",
          ["shelter", "digital_display"]),
    _stop("gulele", "Gulele", "ጉሌሌ", "Gulele", 9.0556, 38.7445, "North", ["shelter", "digital_display"]),
    _stop("kotebe", "Kotebe", "ኮተቤ", "Kotebe", 8.9667, 38.8000, "South", ["shelter", "digital_display"]),
    _stop("kality", "Kality", "ቃሊቲ", "Qaliiti", 8.9334, 38.7778, "South", ["shelter", "digital_display"]),
    _stop("kirkos", "Kirkos", "ቂርቆስ", "Kirkos", 9.0089, 38.7778, "Central", ["shelter", "digital_display"]),
    _stop("nifas-silk", "Nifas Silk", "ንፋስ ስልክ", "Nifas Silk", 8.9889, 38.7223, "Southwest",
          ["shelter", "digital_display"]),
    _stop("yeka", "Yeka", "የካ", "Yeka", 9.0445, 38.7889, "Northeast", ["shelter", "digital_display"]),
]

ROUTES = [
    _route("route-01", "01", "Merkato - Bole Airport", "መርካቶ - ቦሌ አውሮፕላን ማረፊያ",
           "Merkato - Buufata Xayyaaraatti Bole", "Anbessa", "#22C55E",
           ["merkato", "shiromeda", "meskel-square", "kazanchis", "bole", "megenagna", "bole-airport"],
           "05:00", "22:00", 8, 12.50, 18.5, 45),
    _route("route-02", "02", "Piazza - Six Kilo", "ፒያሳ - ስድስት ኪሎ", "Piazza - Jaata Kilo", "Anbessa", "#22C55E",
           ["piazza", "arat-kilo", "kazanchis", "meskel-square", "six-kilo"],
           "05:30", "21:30", 10, 8.50, 12.0, 25),
    _route("route-03", "03", "Mexico - CMC", "ሜክሲኮ - ሲ.ኤም.ሲ", "Mexico - CMC", "Anbessa", "#22C55E",
           ["mexico", "piazza", "meskel-square", "kirkos", "goro", "cmc"],
           "05:15", "21:45", 12, 10.00, 16.0, 35),
    _route("route-04", "04", "Gulele - Kotebe", "ጉሌሌ - ኮተቤ", "Gulele - Kotebe", "Anbessa", "#22C55E",
           ["gulele", "mexico", "arat-kilo", "meskel-square", "bole", "kotebe"],
           "05:45", "21:00", 15, 11.00, 20.5, 40),
    _route("route-11", "11", "Legehar - Nifas Silk", "ለገሃር - ንፋስ ስልክ", "Legehar - Nifas Silk", "Sheger", "#EF4444",
           ["legehar", "stadium", "merkato", "shiromeda", "nifas-silk"],
           "05:00", "22:30", 9, 9.50, 14.5, 30),
    _route("route-12", "12", "Addis Ketema - Kality", "አዲስ ከተማ - ቃሊቲ", "Addis Ketema - Qaliiti", "Sheger", "#EF4444",
           ["addis-ketema", "piazza", "meskel-square", "goro", "cmc", "kality"],
           "05:30", "21:15", 11, 13.00, 22.0, 50),
    _route("route-13", "13", "Yeka - Merkato Circle", "የካ - መርካቶ ዙሪያ", "Yeka - Naannoo Merkato", "Sheger", "#EF4444",
           ["yeka", "arat-kilo", "kazanchis", "meskel-square", "stadium", "merkato"],
           "05:45", "21:30", 13, 10.50, 18.0, 38),
    _route("route-21", "21", "Express: Airport - Piazza", "ፈጣን: አውሮፕላን ማረፊያ - ፒያሳ", "Ariifachiisaa: Buufata - Piazza",
           "Alliance", "#3B82F6",
           ["bole-airport", "bole", "meskel-square", "kazanchis", "arat-kilo", "piazza"],
           "04:30", "23:00", 6, 15.00, 16.5, 25),
    _route("route-22", "22", "Express: Merkato - Six Kilo", "ፈጣን: መርካቶ - ስድስት ኪሎ", "Ariifachiisaa: Merkato - Jaata Kilo",
           "Alliance", "#3B82F6",
           ["merkato", "meskel-square", "kazanchis", "six-kilo"],
           "05:00", "22:00", 7, 12.00, 13.0, 20),
    _route("route-n1", "N1", "Night: Bole Airport - Merkato", "የሌሊት: ቦሌ አውሮፕላን ማረፊያ - መርካቶ", "Halkan: Buufata - Merkato",
           "Alliance", "#8B5CF6",
           ["bole-airport", "bole", "meskel-square", "stadium", "merkato"],
           "22:30", "04:30", 20, 18.00, 16.0, 30),
    _route("route-c1", "C1", "Central Circle (Clockwise)", "ማዕከላዊ ዙሪያ (በሰዓት አቅጣጫ)", "Naannoo Gidduu (Gara Sa'aatii)",
           "Anbessa", "#F59E0B",
           ["meskel-square", "kazanchis", "arat-kilo", "piazza", "addis-ketema", "stadium", "meskel-square"],
           "06:00", "20:00", 10, 6.00, 8.5, 18),
]


def addis_ababa_network() -> dict:
    """Return a fresh copy of the built-in network document."""
    return {
        "stops": copy.deepcopy(STOPS),
        "routes": copy.deepcopy(ROUTES),
    }
