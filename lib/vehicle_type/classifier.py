"""Coarse vehicle type classification from a free-text model description.

Biluppgifter lists an owner's vehicles as "VOLVO V70 2.4", "Harley-Davidson
FLHX", "Kabe Royal 560" etc. Leads are only interesting for some vehicle
types, so every vehicle we store gets tagged.

Rules are checked in order; first hit wins, no hit means passenger car.
"""

import re
from enum import Enum
from typing import Optional


class VehicleType(str, Enum):
    MOTORCYCLE = "motorcycle"
    SNOWMOBILE = "snowmobile"
    ATV = "all_terrain_vehicle"
    CARAVAN = "caravan_or_motorhome"
    TRAILER = "trailer"
    VAN = "light_commercial_van"
    PICKUP = "pickup"
    MACHINERY = "heavy_machinery"
    PASSENGER_CAR = "passenger_car"


_RULES: list[tuple[VehicleType, re.Pattern]] = [
    (VehicleType.MOTORCYCLE, re.compile(
        r"\b(mc|motorcykel|harley|ducati"
        r"|yamaha\s*(mt|yz|xv|xt|xjr|fz)"
        r"|kawasaki\s*(z|ninja|vulcan|vn|zx|er|versys|w\d)"
        r"|honda\s*(cb|cbr|crf|vfr|vt|vtx|gl\d|nc\d|ctx)"
        r"|suzuki\s*(gsx|sv|dr|dl|vs|vl|boulevard)"
        r"|bmw\s*(r\s?\d{3,4}|f\s?\d{3}|g\s?\d{3}|s\s?\d{4}|k\s?\d{4}|c\s?\d{3})"
        r"|ktm|husqvarna\s*(fe|te|fc|tc|svartpilen|vitpilen)"
        r"|triumph|indian|aprilia|moto\s?guzzi|royal\s?enfield|vespa|piaggio)\b"
    )),
    (VehicleType.SNOWMOBILE, re.compile(
        r"\b(snöskoter|skoter|ski.?doo|lynx"
        r"|polaris\s*(indy|rush|switchback|pro|sks|rmk|assault|voyag)"
        r"|arctic\s?cat|yamaha\s*(sidewinder|viper|venture|sr\s?viper))\b"
    )),
    (VehicleType.ATV, re.compile(
        r"\b(atv|fyrhjuling|quad|utv|side.?by.?side"
        r"|polaris\s*(ranger|sportsman|rzr)"
        r"|can.?am\s*(outlander|renegade|maverick)|cfmoto)\b"
    )),
    # Fendt also builds tractors; caravans must stay ahead of machinery
    (VehicleType.CARAVAN, re.compile(
        r"\b(husvagn|husbil|caravan|motorhome|hobby|fendt|adria|knaus|kabe"
        r"|dethleffs|bürstner|hymer|carado|sunlight|eura\s?mobil)\b"
    )),
    (VehicleType.TRAILER, re.compile(
        r"\b(släpvagn|släp|trailer|båttrailer|brenderup|thule|respo|fogelsta"
        r"|niewiadow)\b"
    )),
    (VehicleType.VAN, re.compile(
        r"\b(transport|skåpbil|lätt\s?lastbil|sprinter|crafter|master|movano"
        r"|ducato|boxer|transit(?!\s*connect)|daily|man\s+tg[esl]|scania"
        r"|volvo\s*(fh|fm|fl|fe))\b"
    )),
    (VehicleType.PICKUP, re.compile(
        r"\b(pickup|pick.?up|l200|hilux|ranger|navara|amarok|d.?max|fullback"
        r"|x.?class|gladiator|tacoma|tundra|raptor)\b"
    )),
    (VehicleType.MACHINERY, re.compile(
        r"\b(traktor|maskin|grävmaskin|hjullastare|dumper|new\s?holland"
        r"|john\s?deere|kubota|volvo\s*(l\d|ec\d|bl\d)|caterpillar|cat\s?\d|jcb"
        r"|case\s?(ih)?|valtra|claas|deutz|zetor|massey|ferguson)\b"
    )),
]


def classify_vehicle_type(model: Optional[str]) -> VehicleType:
    """Classify a model description. Never raises."""
    if not model:
        return VehicleType.PASSENGER_CAR
    text = str(model).lower()
    for vehicle_type, pattern in _RULES:
        if pattern.search(text):
            return vehicle_type
    return VehicleType.PASSENGER_CAR
