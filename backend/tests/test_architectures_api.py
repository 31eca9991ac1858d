"""
Tests for the architectures API: CRUD, scoped BOM entries, import and reports
"""
import pytest
from fastapi.testclient import TestClient

FIN_SERVICES_BOM = b"""
kind: BillOfMaterial
metadata:
  name: fin-services
spec:
  modules:
    - name: terraform-vpc
      alias: vpc1
"""


def _files(*documents, mimetype="application/x-yaml"):
    return [("files", (f"bom{i}.yaml", doc, mimetype)) for i, doc in enumerate(documents)]


class TestArchitectureCrud:

    def test_create_get_update_delete(self, client: TestClient, seeded):
        response = client.post("/architectures", json={"arch_id": "edge", "name": "Edge"})
        assert response.status_code == 201
        assert response.json()["confidential"] is True

        assert client.get("/architectures/edge").json()["name"] == "Edge"
        assert client.get("/architectures/count").json() == {"count": 1}

        response = client.patch("/architectures/edge", json={"short_desc": "Edge computing"})
        assert response.status_code == 200
        assert response.json()["short_desc"] == "Edge computing"
        assert response.json()["name"] == "Edge"

        assert client.delete("/architectures/edge").status_code == 204
        assert client.get("/architectures/edge").status_code == 404

    def test_duplicate_architecture(self, client, architecture):
        response = client.post("/architectures", json={"arch_id": "fin-services", "name": "Again"})

        assert response.status_code == 409
        assert response.json()["error"]["architecture"] == "fin-services"

    def test_not_found_shape(self, client, seeded):
        response = client.get("/architectures/missing")

        assert response.status_code == 404
        assert response.json() == {
            "error": {"message": "Architecture missing not found.", "architecture": "missing"}
        }

    def test_delete_removes_boms(self, client, seeded, architecture):
        client.post("/architectures/fin-services/boms", json={"service_id": "vpc"})

        client.delete("/architectures/fin-services")

        assert client.get("/boms/count").json() == {"count": 0}


class TestArchitectureBoms:

    def test_create_and_list(self, client, seeded, architecture):
        response = client.post(
            "/architectures/fin-services/boms",
            json={"service_id": "vpc", "desc": "vpc1", "automation_variables": "variables:\n  region: us-south\n"},
        )
        assert response.status_code == 201
        assert response.json()["arch_id"] == "fin-services"

        client.post("/architectures/fin-services/boms", json={"service_id": "cos", "desc": "cos1"})
        listed = client.get("/architectures/fin-services/boms").json()
        assert [b["desc"] for b in listed] == ["vpc1", "cos1"]

        filtered = client.get("/architectures/fin-services/boms", params={"service_id": "cos"}).json()
        assert [b["desc"] for b in filtered] == ["cos1"]

    def test_rejected_automation_variables(self, client, seeded, architecture):
        response = client.post(
            "/architectures/fin-services/boms",
            json={"service_id": "vpc", "automation_variables": "variables:\n  zone: 1\n"},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "YAML automation variables config error."
        assert "zone" in error["details"]["message"]

    def test_service_without_automation_id(self, client, seeded, architecture):
        response = client.post(
            "/architectures/fin-services/boms",
            json={"service_id": "kms", "automation_variables": "variables: {}\n"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["message"] == "Service Key Protect is missing automation ID."

    def test_patch_and_delete(self, client, seeded, architecture):
        client.post("/architectures/fin-services/boms", json={"service_id": "vpc", "desc": "a"})
        client.post("/architectures/fin-services/boms", json={"service_id": "cos", "desc": "b"})

        response = client.patch(
            "/architectures/fin-services/boms", params={"service_id": "vpc"}, json={"desc": "patched"}
        )
        assert response.json() == {"count": 1}
        assert [b["desc"] for b in client.get("/architectures/fin-services/boms").json()] == ["patched", "b"]

        assert client.delete("/architectures/fin-services/boms").json() == {"count": 2}
        assert client.get("/architectures/fin-services/boms").json() == []


class TestImport:

    def test_import(self, client, seeded):
        response = client.post("/architectures/boms/import", files=_files(FIN_SERVICES_BOM))

        assert response.status_code == 200
        assert response.json() == {"count": 1}
        boms = client.get("/architectures/fin-services/boms").json()
        assert [(b["service_id"], b["desc"]) for b in boms] == [("vpc", "vpc1")]

    def test_conflict_is_400(self, client, seeded):
        client.post("/architectures/boms/import", files=_files(FIN_SERVICES_BOM))

        response = client.post("/architectures/boms/import", files=_files(FIN_SERVICES_BOM))

        assert response.status_code == 400
        assert response.json() == {
            "error": {
                "message": "Architecture fin-services already exists. Set 'overwrite' parameter to overwrite.",
                "architecture": "fin-services",
            }
        }

    def test_overwrite(self, client, seeded):
        client.post("/architectures/boms/import", files=_files(FIN_SERVICES_BOM))

        response = client.post(
            "/architectures/boms/import", params={"overwrite": "true"}, files=_files(FIN_SERVICES_BOM)
        )

        assert response.json() == {"count": 1}
        assert client.get("/boms/count").json() == {"count": 1}

    def test_wrong_mimetype(self, client, seeded):
        response = client.post(
            "/architectures/boms/import", files=_files(FIN_SERVICES_BOM, mimetype="application/json")
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "You must only upload YAML files."

    def test_too_large(self, client, seeded):
        response = client.post(
            "/architectures/boms/import", files=_files(FIN_SERVICES_BOM + b"#" * (150 * 1024))
        )

        assert response.status_code == 400
        assert client.get("/architectures/count").json() == {"count": 0}

    def test_unknown_service_is_400(self, client, seeded):
        response = client.post(
            "/architectures/boms/import",
            files=_files(FIN_SERVICES_BOM.replace(b"terraform-vpc", b"terraform-unknown")),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "YAML module config error for module terraform-unknown"


class TestComplianceReport:

    def test_pdf(self, client, seeded):
        client.post("/architectures/boms/import", files=_files(FIN_SERVICES_BOM))

        response = client.get("/architectures/fin-services/compliance-report", params={"profile": "fs-cloud"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_unknown_architecture(self, client, seeded):
        response = client.get("/architectures/missing/compliance-report")
        assert response.status_code == 404
