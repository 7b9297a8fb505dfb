from .motors import HttpMotorClient, MotorDriver, SimulatedMotors

__all__ = ["MotorDriver", "SimulatedMotors", "HttpMotorClient"]
