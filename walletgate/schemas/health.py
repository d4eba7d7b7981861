from walletgate.schemas.my_base_model import CustomBaseModel


class HealthCheck(CustomBaseModel):
    status: str = "oke"
