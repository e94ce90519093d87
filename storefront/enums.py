import enum


class Role(enum.IntEnum):
    SHOPPER = 0
    ADMIN = 1


class OrderStatus(str, enum.Enum):
    NOT_PROCESS = "Not Process"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "delivered"
    CANCEL = "cancel"

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]
