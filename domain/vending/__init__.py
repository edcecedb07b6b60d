from .entity import MachineState, VendPhase, validate_items

__all__ = ["MachineState", "VendPhase", "validate_items"]
