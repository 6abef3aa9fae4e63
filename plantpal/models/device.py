from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from plantpal.models.database import Base

class Device(Base):
    __tablename__ = "devices"
    
    device_id = Column(Integer, primary_key=True, autoincrement=True)
    cat_num = Column(String, nullable=False, index=True)  # PlantPal asset number
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    location = Column(String, nullable=True)
    thing_name = Column(String, unique=True, nullable=False)  # AWS IoT thing
    presence_connection = Column(Boolean, default=False, nullable=False)
    
    # Relationships
    owner = relationship("User", back_populates="devices")
