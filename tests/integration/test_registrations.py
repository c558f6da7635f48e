"""Integration tests: registrations and student numbering."""

from httpx import AsyncClient


def _student(lastname: str, firstname: str = "Ada", othername: str = "") -> dict:
    return {
        "firstname": firstname,
        "lastname": lastname,
        "othername": othername,
        "gender": "F",
        "school_type": "public",
        "date_of_birth": "2012-04-01",
        "scores": {"english": {"term1": "A", "term2": "B", "term3": "A"}},
    }


async def _register(client: AsyncClient, api_base: str, headers: dict, *students: dict) -> dict:
    resp = await client.post(
        f"{api_base}/school/registrations",
        headers=headers,
        json={"registrations": list(students)},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _numbers_by_surname(client: AsyncClient, api_base: str, headers: dict) -> dict:
    resp = await client.get(f"{api_base}/school/registrations", headers=headers)
    assert resp.status_code == 200
    return {r["lastname"]: r["student_number"] for r in resp.json()["data"]}


async def _finish(client: AsyncClient, api_base: str, headers: dict) -> None:
    resp = await client.post(f"{api_base}/school/registrations/finish", headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["registration_open"] is False


def _id_of(rows: list, lastname: str) -> str:
    return next(r["id"] for r in rows if r["lastname"] == lastname)


async def test_signup_then_login(async_client: AsyncClient, api_base: str, registered_school: dict):
    assert registered_school["school"]["school_name"] == "Holy Trinity Grammar School"
    assert registered_school["school"]["registration_open"] is True

    resp = await async_client.post(
        f"{api_base}/auth/school/login",
        json={"lga_code": "3", "school_code": "045", "password": "school-pass"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["school"]["id"] == registered_school["school"]["id"]

    resp = await async_client.post(
        f"{api_base}/auth/school/login",
        json={"lga_code": "3", "school_code": "45", "password": "wrong-pass"},
    )
    assert resp.status_code == 401


async def test_signup_rules(async_client: AsyncClient, api_base: str, registered_school: dict):
    resp = await async_client.post(
        f"{api_base}/auth/school/signup",
        json={"lga_code": "3", "school_code": "45", "password": "another-pass"},
    )
    assert resp.status_code == 409

    resp = await async_client.post(
        f"{api_base}/auth/school/signup",
        json={"lga_code": "99", "school_code": "1", "password": "another-pass"},
    )
    assert resp.status_code == 404

    resp = await async_client.post(
        f"{api_base}/auth/school/signup",
        json={"lga_code": "3", "school_code": "46", "password": "short"},
    )
    assert resp.status_code == 422

    resp = await async_client.post(
        f"{api_base}/auth/school/login",
        json={"lga_code": "12", "school_code": "7", "password": "whatever"},
    )
    assert resp.status_code == 404


async def test_new_student_is_ranked_alphabetically(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    await _register(async_client, api_base, headers, _student("Okoro"), _student("Adams"))
    assert await _numbers_by_surname(async_client, api_base, headers) == {
        "Adams": "30450001",
        "Okoro": "30450002",
    }

    data = await _register(async_client, api_base, headers, _student("Bello"))
    assert data["mode"] == "regular"
    assert data["created"] == 1
    assert data["warnings"] == []
    assert data["registrations"][0]["student_number"] == "30450002"

    assert await _numbers_by_surname(async_client, api_base, headers) == {
        "Adams": "30450001",
        "Bello": "30450002",
        "Okoro": "30450003",
    }


async def test_registrations_get_unique_account_codes(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    data = await _register(
        async_client, api_base, registered_school["headers"],
        *[_student(f"Surname{i}") for i in range(10)],
    )
    codes = [r["acc_code"] for r in data["registrations"]]
    assert len(set(codes)) == 10
    for code in codes:
        assert len(code) == 10
        assert code.isdigit()


async def test_shared_surname_shares_number(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    data = await _register(
        async_client, api_base, headers,
        _student("Smith", "John"), _student("Adams"), _student("smith ", "Jane"), _student("Zed"),
    )
    numbers = {(r["firstname"], r["lastname"]): r["student_number"] for r in data["registrations"]}
    assert numbers[("Ada", "Adams")] == "30450001"
    assert numbers[("John", "Smith")] == numbers[("Jane", "smith")] == "30450002"
    assert numbers[("Ada", "Zed")] == "30450003"


async def test_blank_names_are_rejected(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    for lastname in ("", "   "):
        resp = await async_client.post(
            f"{api_base}/school/registrations",
            headers=headers,
            json={"registrations": [_student(lastname), _student("Adams")]},
        )
        assert resp.status_code == 422
    assert await _numbers_by_surname(async_client, api_base, headers) == {}

    data = await _register(async_client, api_base, headers, _student("  Okoro ", " Emeka"))
    row = data["registrations"][0]
    assert (row["firstname"], row["lastname"]) == ("Emeka", "Okoro")

    for lastname in ("", "  "):
        resp = await async_client.patch(
            f"{api_base}/school/registrations/{row['id']}", headers=headers, json={"lastname": lastname}
        )
        assert resp.status_code == 422
    assert await _numbers_by_surname(async_client, api_base, headers) == {"Okoro": "30450001"}


async def test_rename_and_delete_renumber_while_open(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    data = await _register(
        async_client, api_base, headers, _student("Adams"), _student("Bello"), _student("Okoro")
    )
    rows = data["registrations"]

    resp = await async_client.patch(
        f"{api_base}/school/registrations/{_id_of(rows, 'Adams')}",
        headers=headers,
        json={"lastname": "Zubair"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["student_number"] == "30450003"
    assert await _numbers_by_surname(async_client, api_base, headers) == {
        "Bello": "30450001",
        "Okoro": "30450002",
        "Zubair": "30450003",
    }

    resp = await async_client.delete(
        f"{api_base}/school/registrations/{_id_of(rows, 'Bello')}", headers=headers
    )
    assert resp.status_code == 200
    assert await _numbers_by_surname(async_client, api_base, headers) == {
        "Okoro": "30450001",
        "Zubair": "30450002",
    }


async def test_late_registrations_use_incremental_numbers(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    await _register(async_client, api_base, headers, _student("Okoro"), _student("Adams"))
    await _finish(async_client, api_base, headers)

    data = await _register(async_client, api_base, headers, _student("Abiola"))
    assert data["mode"] == "late"
    assert data["registrations"][0]["student_number"] == "30450003"

    data = await _register(async_client, api_base, headers, _student("Eze"), _student("Ibe"))
    assert [r["student_number"] for r in data["registrations"]] == ["30450004", "30450005"]

    # The regular roster is frozen
    assert await _numbers_by_surname(async_client, api_base, headers) == {
        "Adams": "30450001",
        "Okoro": "30450002",
    }

    resp = await async_client.get(f"{api_base}/school/post-registrations", headers=headers)
    assert resp.status_code == 200
    listing = resp.json()["data"]
    assert listing["max_sequence"] == 5
    assert sorted(r["lastname"] for r in listing["registrations"]) == ["Abiola", "Eze", "Ibe"]


async def test_late_number_follows_max_across_both_tables(
    async_client: AsyncClient, api_base: str, registered_school: dict, admin_headers: dict
):
    headers = registered_school["headers"]
    school_id = registered_school["school"]["id"]
    await _register(async_client, api_base, headers, *[_student(s) for s in "ABCDEFG"])
    await _finish(async_client, api_base, headers)
    await _register(async_client, api_base, headers, _student("H"), _student("I"))

    # Reopen, grow the regular roster past the late numbers, close again
    resp = await async_client.post(
        f"{api_base}/admin/registration-status",
        headers=admin_headers,
        json={"school_id": school_id, "registration_open": True},
    )
    assert resp.status_code == 200
    await _register(async_client, api_base, headers, *[_student(s) for s in "JKLMN"])
    await _finish(async_client, api_base, headers)

    # Regular ranks now reach 0012; late numbers stopped at 0009
    data = await _register(async_client, api_base, headers, _student("O"))
    assert data["registrations"][0]["student_number"] == "30450013"


async def test_edits_after_close_keep_numbers(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    data = await _register(async_client, api_base, headers, _student("Bello"), _student("Okoro"))
    await _finish(async_client, api_base, headers)

    resp = await async_client.patch(
        f"{api_base}/school/registrations/{_id_of(data['registrations'], 'Okoro')}",
        headers=headers,
        json={"lastname": "Abubakar"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["student_number"] == "30450002"

    resp = await async_client.delete(
        f"{api_base}/school/registrations/{_id_of(data['registrations'], 'Bello')}", headers=headers
    )
    assert resp.status_code == 200
    assert await _numbers_by_surname(async_client, api_base, headers) == {"Abubakar": "30450002"}

    resp = await async_client.post(f"{api_base}/school/registrations/renumber", headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "REGISTRATION_CLOSED"


async def test_explicit_renumber(async_client: AsyncClient, api_base: str, registered_school: dict):
    headers = registered_school["headers"]
    await _register(async_client, api_base, headers, _student("Okoro"), _student("Adams"))

    resp = await async_client.post(f"{api_base}/school/registrations/renumber", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["updated"] == 0
    assert [r["student_number"] for r in data["registrations"]] == ["30450001", "30450002"]


async def test_post_registration_edit_and_delete(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    headers = registered_school["headers"]
    await _finish(async_client, api_base, headers)
    data = await _register(async_client, api_base, headers, _student("Eze"))
    late_id = data["registrations"][0]["id"]
    assert data["registrations"][0]["student_number"] == "30450001"

    resp = await async_client.patch(
        f"{api_base}/school/post-registrations/{late_id}", headers=headers, json={"firstname": "Chidi"}
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["firstname"] == "Chidi"
    assert resp.json()["data"]["student_number"] == "30450001"

    # Late rows are not reachable through the regular endpoints
    resp = await async_client.delete(f"{api_base}/school/registrations/{late_id}", headers=headers)
    assert resp.status_code == 404

    resp = await async_client.delete(f"{api_base}/school/post-registrations/{late_id}", headers=headers)
    assert resp.status_code == 200


async def test_registrations_are_scoped_to_school(
    async_client: AsyncClient, api_base: str, registered_school: dict, school_signup
):
    other = await school_signup("3", "46")
    data = await _register(async_client, api_base, registered_school["headers"], _student("Adams"))
    row_id = data["registrations"][0]["id"]

    resp = await async_client.patch(
        f"{api_base}/school/registrations/{row_id}", headers=other["headers"], json={"lastname": "X"}
    )
    assert resp.status_code == 404

    other_data = await _register(async_client, api_base, other["headers"], _student("Zed"))
    assert other_data["registrations"][0]["student_number"] == "30460001"


async def test_unresolved_school_registers_without_numbers(
    async_client: AsyncClient, api_base: str, admin_headers: dict, school_signup
):
    school = await school_signup("3", "46")
    # Move the school's dataset row to another code pair
    resp = await async_client.post(
        f"{api_base}/admin/school-references",
        headers=admin_headers,
        json={
            "lgaCode": "LG03", "lCode": "3", "schCode": "99", "progID": "1",
            "schName": "St. Mary's Secondary School", "id": "2",
        },
    )
    assert resp.status_code == 200

    data = await _register(async_client, api_base, school["headers"], _student("Adams"))
    assert data["mode"] == "regular"
    assert data["registrations"][0]["student_number"] is None
    assert len(data["warnings"]) == 1

    await _finish(async_client, api_base, school["headers"])
    data = await _register(async_client, api_base, school["headers"], _student("Bello"), _student("Eze"))
    assert [r["student_number"] for r in data["registrations"]] == ["30460001", "30460002"]
    assert len(data["warnings"]) == 1


async def test_check_duplicate(async_client: AsyncClient, api_base: str, registered_school: dict):
    headers = registered_school["headers"]
    await _register(async_client, api_base, headers, _student("Adams", "Ada", "Ngozi"))
    await _finish(async_client, api_base, headers)
    await _register(async_client, api_base, headers, _student("Okoro", "Emeka"))

    resp = await async_client.post(
        f"{api_base}/school/check-duplicate",
        headers=headers,
        json={"students": [
            {"firstname": "ada", "lastname": "ADAMS"},
            {"firstname": "Emeka", "lastname": "okoro"},
            {"firstname": "Ada", "lastname": "Adams", "othername": "Chioma"},
            {"firstname": "New", "lastname": "Person"},
        ]},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["has_duplicates"] is True
    assert [(d["lastname"], d["mode"]) for d in data["duplicates"]] == [
        ("Adams", "regular"),
        ("Okoro", "late"),
    ]


async def test_registration_requires_school_session(async_client: AsyncClient, api_base: str):
    resp = await async_client.get(
        f"{api_base}/school/registrations", headers={"Authorization": "Bearer not-a-token"}
    )
    assert resp.status_code == 401
