from pydantic import BaseModel


# Error responses: body of every BookingError mapped at the API boundary
class ErrorResponse(BaseModel):
    error: str
    message: str


class DeletedResponse(BaseModel):
    id: int
    deleted: bool = True
