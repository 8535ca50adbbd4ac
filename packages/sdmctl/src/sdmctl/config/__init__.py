from .loader import SdmConfiguration, load_configuration

__all__ = ["SdmConfiguration", "load_configuration"]
