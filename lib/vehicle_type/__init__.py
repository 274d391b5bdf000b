from lib.vehicle_type.classifier import VehicleType, classify_vehicle_type

__all__ = ["VehicleType", "classify_vehicle_type"]
