import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.db.schema import MaterialImage
from conftest import png


def upload(client: TestClient, material_id: str, count: int):
    return client.post(
        f'/api/materials/{material_id}/images',
        files=[png(f'photo{i}.png') for i in range(count)],
    )


def primaries(material: dict) -> list:
    return [img['id'] for img in material['images'] if img['isPrimary']]


def test_upload_marks_first_image_primary(auth_client: TestClient, material, storage):
    response = upload(auth_client, material['id'], 2)

    assert response.status_code == 200
    images = response.json()['material']['images']
    assert len(images) == 2
    assert [img['isPrimary'] for img in images] == [True, False]
    for img in images:
        assert img['url'].startswith('/uploads/materials/')
        assert img['url'].endswith('.png')
        assert storage.path_for(img['url']).exists()


def test_later_batches_do_not_add_primaries(auth_client: TestClient, material):
    upload(auth_client, material['id'], 1)
    response = upload(auth_client, material['id'], 2)

    images = response.json()['material']['images']
    assert len(images) == 3
    assert len(primaries(response.json()['material'])) == 1
    assert images[0]['isPrimary'] is True


def test_generated_names_do_not_collide(auth_client: TestClient, material):
    response = auth_client.post(
        f"/api/materials/{material['id']}/images",
        files=[png('same.png'), png('same.png')],
    )

    urls = [img['url'] for img in response.json()['material']['images']]
    assert len(set(urls)) == 2
    assert all('same' not in url for url in urls)


def test_second_batch_over_capacity_is_rejected(auth_client: TestClient, material, storage):
    assert upload(auth_client, material['id'], 3).status_code == 200

    response = upload(auth_client, material['id'], 3)

    assert response.status_code == 400
    assert response.json()['detail'] == 'Maximum 5 images allowed per material'
    stored = list((storage.root / 'materials').iterdir())
    assert len(stored) == 3


def test_exactly_five_then_sixth_fails(auth_client: TestClient, material):
    assert upload(auth_client, material['id'], 2).status_code == 200
    assert upload(auth_client, material['id'], 3).status_code == 200

    response = upload(auth_client, material['id'], 1)

    assert response.status_code == 400
    assert len(auth_client.get(f"/api/materials/{material['id']}").json()['images']) == 5


def test_six_in_one_batch_is_rejected(auth_client: TestClient, material):
    response = upload(auth_client, material['id'], 6)

    assert response.status_code == 400


def test_rejects_disallowed_type(auth_client: TestClient, material, storage):
    response = auth_client.post(
        f"/api/materials/{material['id']}/images",
        files=[png('ok.png'), ('images', ('doc.gif', b'GIF89a', 'image/gif'))],
    )

    assert response.status_code == 400
    # Nothing from the batch is kept
    assert not (storage.root / 'materials').exists()
    assert auth_client.get(f"/api/materials/{material['id']}").json()['images'] == []


def test_rejects_mismatched_extension_and_content_type(auth_client: TestClient, material):
    """A .png name with a non-image content type is not enough"""
    response = auth_client.post(
        f"/api/materials/{material['id']}/images",
        files=[('images', ('fake.png', b'%PDF-1.4', 'application/pdf'))],
    )

    assert response.status_code == 400


def test_rejects_oversized_file(auth_client: TestClient, material):
    big = ('images', ('big.jpg', b'\xff\xd8' + b'\0' * (5 * 1024 * 1024), 'image/jpeg'))

    response = auth_client.post(f"/api/materials/{material['id']}/images", files=[big])

    assert response.status_code == 400
    assert '5MB' in response.json()['detail']


def test_upload_to_unknown_material(auth_client: TestClient):
    response = upload(auth_client, '00000000-0000-0000-0000-000000000000', 1)

    assert response.status_code == 404


def test_set_primary_moves_flag(auth_client: TestClient, material):
    images = upload(auth_client, material['id'], 3).json()['material']['images']
    img1, img2 = images[0]['id'], images[1]['id']

    response = auth_client.put(f"/api/materials/{material['id']}/images/{img2}/primary")

    assert response.status_code == 200
    assert primaries(response.json()['material']) == [img2]
    assert img1 != img2


def test_set_primary_on_current_primary(auth_client: TestClient, material):
    images = upload(auth_client, material['id'], 2).json()['material']['images']

    response = auth_client.put(f"/api/materials/{material['id']}/images/{images[0]['id']}/primary")

    assert response.status_code == 200
    assert primaries(response.json()['material']) == [images[0]['id']]


def test_set_primary_unknown_image(auth_client: TestClient, material):
    upload(auth_client, material['id'], 2)

    response = auth_client.put(
        f"/api/materials/{material['id']}/images/00000000-0000-0000-0000-000000000000/primary")

    assert response.status_code == 404
    # Existing primary is untouched
    fetched = auth_client.get(f"/api/materials/{material['id']}").json()
    assert len(primaries(fetched)) == 1


def test_delete_image_removes_file(auth_client: TestClient, material, storage):
    images = upload(auth_client, material['id'], 2).json()['material']['images']
    target = images[1]

    response = auth_client.delete(f"/api/materials/{material['id']}/images/{target['id']}")

    assert response.status_code == 200
    assert not storage.path_for(target['url']).exists()
    remaining = auth_client.get(f"/api/materials/{material['id']}").json()['images']
    assert [img['id'] for img in remaining] == [images[0]['id']]


def test_delete_primary_does_not_promote(auth_client: TestClient, material):
    images = upload(auth_client, material['id'], 2).json()['material']['images']

    auth_client.delete(f"/api/materials/{material['id']}/images/{images[0]['id']}")

    fetched = auth_client.get(f"/api/materials/{material['id']}").json()
    assert len(fetched['images']) == 1
    assert primaries(fetched) == []


def test_delete_image_with_missing_file_still_succeeds(auth_client: TestClient, material, storage):
    """File cleanup is best-effort; the record is updated regardless"""
    image = upload(auth_client, material['id'], 1).json()['material']['images'][0]
    storage.path_for(image['url']).unlink()

    response = auth_client.delete(f"/api/materials/{material['id']}/images/{image['id']}")

    assert response.status_code == 200
    assert auth_client.get(f"/api/materials/{material['id']}").json()['images'] == []


def test_delete_unknown_image(auth_client: TestClient, material):
    response = auth_client.delete(
        f"/api/materials/{material['id']}/images/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404


def test_delete_material_removes_all_files(auth_client: TestClient, material, storage):
    images = upload(auth_client, material['id'], 3).json()['material']['images']
    paths = [storage.path_for(img['url']) for img in images]
    assert all(p.exists() for p in paths)

    response = auth_client.delete(f"/api/materials/{material['id']}")

    assert response.status_code == 200
    assert not any(p.exists() for p in paths)
    assert auth_client.get(f"/api/materials/{material['id']}").status_code == 404


def test_delete_material_survives_storage_failure(auth_client: TestClient, material, storage, monkeypatch):
    upload(auth_client, material['id'], 2)
    monkeypatch.setattr(storage, 'delete', lambda url: False)

    response = auth_client.delete(f"/api/materials/{material['id']}")

    assert response.status_code == 200
    assert auth_client.get(f"/api/materials/{material['id']}").status_code == 404


def test_files_removed_when_commit_fails(auth_client: TestClient, material, storage, monkeypatch):
    """Files are written before the commit and removed again if it fails"""
    def failing_commit(self):
        raise SQLAlchemyError('database is unavailable')

    monkeypatch.setattr(Session, 'commit', failing_commit)
    response = upload(auth_client, material['id'], 2)
    monkeypatch.undo()

    assert response.status_code == 500
    directory = storage.root / 'materials'
    assert not directory.exists() or list(directory.iterdir()) == []
    assert auth_client.get(f"/api/materials/{material['id']}").json()['images'] == []


def test_set_primary_unknown_material(auth_client: TestClient):
    response = auth_client.put(
        '/api/materials/00000000-0000-0000-0000-000000000000'
        '/images/00000000-0000-0000-0000-000000000000/primary')

    assert response.status_code == 404
    assert response.json()['detail'] == 'Material not found'


def test_delete_image_of_unknown_material(auth_client: TestClient):
    response = auth_client.delete(
        '/api/materials/00000000-0000-0000-0000-000000000000'
        '/images/00000000-0000-0000-0000-000000000000')

    assert response.status_code == 404
    assert response.json()['detail'] == 'Material not found'


def test_index_rejects_second_primary(session, material):
    """The database refuses two primary images on one material"""
    material_id = uuid.UUID(material['id'])
    session.add(MaterialImage(material_id=material_id, url='/uploads/materials/a.png',
                              is_primary=True, position=0))
    session.commit()

    session.add(MaterialImage(material_id=material_id, url='/uploads/materials/b.png',
                              is_primary=True, position=1))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()

    # Non-primary images are unconstrained
    session.add(MaterialImage(material_id=material_id, url='/uploads/materials/c.png',
                              is_primary=False, position=1))
    session.commit()
