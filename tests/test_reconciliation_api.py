import pytest
from fastapi import status

from sirtis.core.exceptions import ReconciliationError
from sirtis.models.audit_log import AuditLog
from sirtis.models.document import Document
from sirtis.models.document_audit_log import DocumentAuditLog
from sirtis.models.document_category_folder import DocumentCategoryFolder
from sirtis.services.reconciliation import DocumentReconciliationService

RECONCILE_URL = "/api/documents/reconcile"
FOLDERS_URL = "/api/documents/folders"

EXPECTED_PATHS = {
    "unknown": "Finance/General Document",
    "bob_report": "Finance/Payroll/Reports",
    "payroll_report": "Finance/Payroll/Reports",
    "hr_policy": "HR/Policies & Procedures",
    "orphan": "General/General Document",
    "audited_form": "Finance/Forms & Templates",
}


@pytest.fixture
def documents(db_session, org_chart):
    docs = {
        "unknown": Document(filename="memo.txt", department="Unknown Department",
                            uploaded_by="jane@org.example", is_personal_repo=True),
        "bob_report": Document(filename="q1.pdf", uploaded_by="Bob Stone", category="REPORT"),
        "payroll_report": Document(filename="q2.pdf", department="Payroll", category="report",
                                   custom_metadata={"source": "import"}),
        "hr_policy": Document(filename="leave.pdf", department="HR", category="POLICY"),
        "orphan": Document(filename="misc.bin", uploaded_by="ghost@nowhere.example"),
        "audited_form": Document(filename="form.docx", category="FORM"),
    }
    for doc in docs.values():
        db_session.add(doc)
    db_session.flush()

    form = docs["audited_form"]
    # A view by Bob must not count as authorship
    db_session.add(DocumentAuditLog(document_id=form.id, user_id=org_chart["bob"].id, action="VIEWED"))
    db_session.add(DocumentAuditLog(document_id=form.id, user_id=org_chart["jane"].id, action="CREATED"))
    db_session.add(DocumentCategoryFolder(path="Old/Reports", department="Old", category="Reports",
                                          document_count=4, is_active=True))
    db_session.commit()
    return docs


def snapshot(db_session):
    db_session.expire_all()
    return [
        (d.id, d.department, d.department_id, d.category, d.folder_path, d.custom_metadata, d.is_personal_repo)
        for d in db_session.query(Document).order_by(Document.id).all()
    ]


def test_reconcile_requires_authentication(client):
    response = client.post(RECONCILE_URL, json={"dryRun": True})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_reconcile_requires_admin(client, staff_user, auth_headers):
    response = client.post(RECONCILE_URL, json={"dryRun": True}, headers=auth_headers(staff_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["success"] is False


def test_dry_run_changes_nothing(client, db_session, admin_user, auth_headers, documents):
    before = snapshot(db_session)

    response = client.post(RECONCILE_URL, json={"dryRun": True}, headers=auth_headers(admin_user))
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["dryRun"] is True
    assert body["totalDocuments"] == 6
    assert body["updatedDocuments"] == 6
    assert len(body["examples"]) == 5

    assert snapshot(db_session) == before
    folders = db_session.query(DocumentCategoryFolder).all()
    assert [f.path for f in folders] == ["Old/Reports"]
    assert folders[0].is_active


def test_commit_run_normalizes_documents(client, db_session, admin_user, auth_headers, documents, org_chart):
    response = client.post(RECONCILE_URL, json={"dryRun": False}, headers=auth_headers(admin_user))
    assert response.status_code == 200
    body = response.json()
    assert body["dryRun"] is False
    assert body["updatedDocuments"] == 6

    db_session.expire_all()
    for key, path in EXPECTED_PATHS.items():
        doc = db_session.get(Document, documents[key].id)
        assert doc.folder_path == path, key
        assert doc.department != "Unknown Department"
        assert doc.is_personal_repo is False

    bob_report = db_session.get(Document, documents["bob_report"].id)
    assert bob_report.department == "Finance"
    assert bob_report.department_id == org_chart["payroll"].id
    assert bob_report.category == "REPORT"
    assert bob_report.custom_metadata["subunit"] == "Payroll"
    assert bob_report.custom_metadata["categoryDisplay"] == "Reports"
    assert "reconciledAt" in bob_report.custom_metadata

    payroll_report = db_session.get(Document, documents["payroll_report"].id)
    assert payroll_report.category == "REPORT"
    assert payroll_report.custom_metadata["source"] == "import"

    orphan = db_session.get(Document, documents["orphan"].id)
    assert orphan.department == "General"
    assert orphan.department_id is None
    assert orphan.category == "OTHER"


def test_example_shape(client, admin_user, auth_headers, documents, org_chart):
    response = client.post(RECONCILE_URL, json={"dryRun": True}, headers=auth_headers(admin_user))
    first = response.json()["examples"][0]
    assert first == {
        "id": documents["unknown"].id,
        "finalDepartment": "Finance",
        "finalDepartmentId": org_chart["finance"].id,
        "finalSubunit": None,
        "finalCategoryEnum": "OTHER",
        "finalCategoryDisplay": "General Document",
        "finalFolderPath": "Finance/General Document",
        "changed": True,
    }


def test_dry_run_examples_match_commit_run(client, admin_user, auth_headers, documents):
    headers = auth_headers(admin_user)
    dry = client.post(RECONCILE_URL, json={"dryRun": True}, headers=headers).json()
    committed = client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers).json()
    assert dry["examples"] == committed["examples"]
    assert dry["updatedDocuments"] == committed["updatedDocuments"]


def test_second_run_is_a_no_op(client, db_session, admin_user, auth_headers, documents):
    headers = auth_headers(admin_user)
    client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers)
    after_first = snapshot(db_session)

    response = client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers)
    body = response.json()
    assert body["updatedDocuments"] == 0
    assert all(example["changed"] is False for example in body["examples"])
    assert snapshot(db_session) == after_first


def test_empty_body_means_commit(client, db_session, admin_user, auth_headers, documents):
    response = client.post(RECONCILE_URL, headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["dryRun"] is False
    db_session.expire_all()
    assert db_session.get(Document, documents["hr_policy"].id).folder_path == "HR/Policies & Procedures"


def test_folder_aggregates_match_documents(client, db_session, admin_user, auth_headers, documents):
    client.post(RECONCILE_URL, json={"dryRun": False}, headers=auth_headers(admin_user))

    db_session.expire_all()
    folders = {f.path: f for f in db_session.query(DocumentCategoryFolder).all()}
    active = {path: f for path, f in folders.items() if f.is_active}

    assert set(active) == set(EXPECTED_PATHS.values())
    assert active["Finance/Payroll/Reports"].document_count == 2
    assert active["Finance/Payroll/Reports"].category == "Payroll / Reports"
    assert active["Finance/Payroll/Reports"].folder_metadata == {"subunit": "Payroll", "categoryDisplay": "Reports"}
    assert active["HR/Policies & Procedures"].department == "HR"
    assert sum(f.document_count for f in active.values()) == db_session.query(Document).count()

    stale = folders["Old/Reports"]
    assert stale.is_active is False
    assert stale.document_count == 0


def test_folder_listing_hides_retired_folders(client, admin_user, staff_user, auth_headers, documents):
    client.post(RECONCILE_URL, json={"dryRun": False}, headers=auth_headers(admin_user))

    response = client.get(FOLDERS_URL, headers=auth_headers(staff_user))
    assert response.status_code == 200
    paths = [f["path"] for f in response.json()]
    assert paths == sorted(set(EXPECTED_PATHS.values()))

    response = client.get(FOLDERS_URL, params={"include_inactive": True}, headers=auth_headers(staff_user))
    listed = {f["path"]: f for f in response.json()}
    assert "Old/Reports" in listed
    assert listed["Old/Reports"]["document_count"] == 0
    assert listed["Finance/Payroll/Reports"]["metadata"]["subunit"] == "Payroll"


def test_every_run_is_audited(client, db_session, admin_user, auth_headers, documents):
    headers = auth_headers(admin_user)
    client.post(RECONCILE_URL, json={"dryRun": True}, headers=headers)
    client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers)

    entries = db_session.query(AuditLog).filter(
        AuditLog.action == "reconcile_documents"
    ).order_by(AuditLog.id).all()
    assert [e.details["dry_run"] for e in entries] == [True, False]
    assert entries[0].user_id == admin_user.id
    assert entries[0].user_role == "HR_ADMIN"
    assert entries[1].details["folder_count"] == 5
    assert entries[1].details["updated_documents"] == 6


def test_failure_returns_generic_error(client, admin_user, auth_headers, monkeypatch):
    def boom(self, dry_run=False, actor=None):
        raise ReconciliationError("write")

    monkeypatch.setattr(DocumentReconciliationService, "reconcile", boom)
    response = client.post(RECONCILE_URL, json={"dryRun": False}, headers=auth_headers(admin_user))
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "errors": [{"msg": "Internal server error", "code": "INTERNAL_ERROR"}],
    }


def test_no_documents(client, admin_user, auth_headers):
    response = client.post(RECONCILE_URL, json={"dryRun": False}, headers=auth_headers(admin_user))
    body = response.json()
    assert body["totalDocuments"] == 0
    assert body["updatedDocuments"] == 0
    assert body["examples"] == []


def test_repeated_subunit_names_stay_stable(client, db_session, admin_user, auth_headers, org_chart):
    from sirtis.models.department import Department
    from sirtis.models.employee import Employee
    from sirtis.models.user import User, UserRole

    hr_admin = Department(name="Admin", code="HR-ADM", parent_id=org_chart["hr"].id)
    db_session.add(hr_admin)
    db_session.flush()
    db_session.add(Department(name="Admin", code="FIN-ADM", parent_id=org_chart["finance"].id))
    ann = User(email="ann@org.example", hashed_password="x", first_name="Ann", last_name="Lee",
               role=UserRole.EMPLOYEE)
    db_session.add(ann)
    db_session.flush()
    db_session.add(Employee(user_id=ann.id, email="ann@org.example", first_name="Ann", last_name="Lee",
                            department_id=hr_admin.id))
    doc = Document(filename="audit.pdf", uploaded_by="ann@org.example", category="REPORT")
    db_session.add(doc)
    db_session.commit()

    headers = auth_headers(admin_user)
    first = client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers).json()
    assert first["updatedDocuments"] == 1
    db_session.expire_all()
    assert db_session.get(Document, doc.id).folder_path == "HR/Admin/Reports"

    second = client.post(RECONCILE_URL, json={"dryRun": False}, headers=headers).json()
    assert second["updatedDocuments"] == 0
    db_session.expire_all()
    stored = db_session.get(Document, doc.id)
    assert stored.folder_path == "HR/Admin/Reports"
    assert stored.department_id == hr_admin.id
