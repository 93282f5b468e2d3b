import pytest

from app import errors
from app.models import DocumentKind, EquipmentStatus
from app.schemas.equipment import EquipmentCreate, EquipmentUpdate
from app.services import equipment_registry


def test_create_and_get(test_db_session):
    equipment = equipment_registry.create_equipment(
        test_db_session, EquipmentCreate(name="XRD", location="1F Analysis Room")
    )
    assert equipment.status == EquipmentStatus.AVAILABLE.value
    assert equipment_registry.get_equipment(test_db_session, equipment.id).name == "XRD"


def test_get_missing(test_db_session):
    assert equipment_registry.find_equipment(test_db_session, 42) is None
    with pytest.raises(errors.NotFoundError):
        equipment_registry.get_equipment(test_db_session, 42)


def test_list_available_excludes_maintenance(test_db_session, make_equipment):
    make_equipment("XRD")
    make_equipment("AFM")
    make_equipment("3D Printer", status=EquipmentStatus.MAINTENANCE)
    assert [e.name for e in equipment_registry.list_available(test_db_session)] == ["AFM", "XRD"]
    assert len(equipment_registry.list_equipment(test_db_session)) == 3


def test_partial_update(test_db_session, make_equipment):
    equipment = make_equipment("SEM", location="1F")
    updated = equipment_registry.update_equipment(
        test_db_session, equipment.id, EquipmentUpdate(description="Field emission SEM")
    )
    assert updated.description == "Field emission SEM"
    assert updated.location == "1F"
    assert updated.name == "SEM"


def test_update_rejects_unknown_manager(test_db_session, make_equipment):
    equipment = make_equipment("SEM")
    with pytest.raises(errors.NotFoundError):
        equipment_registry.update_equipment(test_db_session, equipment.id, EquipmentUpdate(manager_id=9999))
    test_db_session.expire_all()
    assert equipment_registry.get_equipment(test_db_session, equipment.id).manager_id is None


@pytest.mark.parametrize("value", ["maintenance", "available"])
def test_update_status(test_db_session, make_equipment, value):
    equipment = make_equipment()
    assert equipment_registry.update_status(test_db_session, equipment.id, value).status == value


def test_update_status_rejects_unknown_value(test_db_session, make_equipment):
    equipment = make_equipment()
    with pytest.raises(errors.ValidationError):
        equipment_registry.update_status(test_db_session, equipment.id, "broken")


def test_document_url_columns(test_db_session, make_equipment):
    equipment = make_equipment()
    equipment_registry.set_document_url(test_db_session, equipment.id, DocumentKind.IMAGE, "/uploads/x.png")
    equipment_registry.set_document_url(test_db_session, equipment.id, DocumentKind.QUICK_GUIDE, "/uploads/q.pdf")
    assert equipment.image_file_url == "/uploads/x.png"
    assert equipment.quick_guide_url == "/uploads/q.pdf"
    assert equipment.image_url is None


def test_delete(test_db_session, make_equipment):
    equipment = make_equipment()
    equipment_registry.delete_equipment(test_db_session, equipment.id)
    assert equipment_registry.find_equipment(test_db_session, equipment.id) is None
