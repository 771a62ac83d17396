import io


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_list_default_images(client):
    res = client.get('/api/images')
    assert res.status_code == 200
    data = res.get_json()
    assert data['success'] is True
    assert [img['id'] for img in data['images']] == [f"default_{n}" for n in range(1, 8)]
    assert data['images'][0]['url'] == '/puzzles/1.webp'


def test_upload_and_delete_image(client, sio_factory):
    watcher = sio_factory()
    watcher.get_received()

    res = client.post(
        '/api/images',
        data={'image': (io.BytesIO(b'\x89PNG fake'), 'cat.png', 'image/png')},
        content_type='multipart/form-data',
    )
    assert res.status_code == 200
    image = res.get_json()['image']
    assert image['id'].startswith('puzzle_')
    assert image['filename'] == f"{image['id']}.png"
    assert image['url'].startswith('data:image/png;base64,')
    assert [pkt['name'] for pkt in watcher.get_received()] == ['images:update']

    listed = client.get('/api/images').get_json()['images']
    assert listed[-1]['id'] == image['id']

    res = client.delete(f"/api/images/{image['id']}")
    assert res.status_code == 200
    assert res.get_json()['success'] is True
    assert [pkt['name'] for pkt in watcher.get_received()] == ['images:update']
    assert len(client.get('/api/images').get_json()['images']) == 7


def test_upload_requires_file(client):
    res = client.post('/api/images', data={}, content_type='multipart/form-data')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'No file uploaded'


def test_upload_rejects_type_and_size(client):
    res = client.post(
        '/api/images',
        data={'image': (io.BytesIO(b'GIF89a'), 'cat.gif', 'image/gif')},
        content_type='multipart/form-data',
    )
    assert res.status_code == 400
    assert res.get_json()['success'] is False

    # TestConfig caps uploads at 1 KiB
    res = client.post(
        '/api/images',
        data={'image': (io.BytesIO(b'x' * 2048), 'big.jpg', 'image/jpeg')},
        content_type='multipart/form-data',
    )
    assert res.status_code == 400


def test_delete_missing_image(client):
    res = client.delete('/api/images/nope')
    assert res.status_code == 404
    assert res.get_json() == {'success': False, 'error': 'Image not found'}


def test_switch_image_set(client):
    res = client.put('/api/images', json={'set': 'test'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['count'] == 1
    assert data['images'][0]['url'] == '/puzzles-test/1.webp'

    res = client.put('/api/images', json={'set': 'holiday'})
    assert res.status_code == 400

    res = client.put('/api/images', json={})
    assert res.get_json()['count'] == 7


def test_score_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['score', '10', '10'])
    assert result.exit_code == 0
    assert result.output.strip().endswith('-> 1245')


def test_shuffle_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['shuffle', '--pieces', '4'])
    assert result.exit_code == 0
    board = [int(p) for p in result.output.split()]
    assert sorted(board) == [0, 1, 2, 3]
    assert board != [0, 1, 2, 3]
