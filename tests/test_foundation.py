"""
Foundation layer tests.

Tests for configuration and the health endpoint.
"""
import pytest


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health_endpoint_returns_ok(self, client):
        """Test health endpoint returns 200 with status ok."""
        response = await client.get('/health')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ok'
        assert isinstance(data['version'], str)
        assert data['uptime'] >= 0
        assert data['timestamp']
        assert data['baseUrl'] == 'http://test'

    @pytest.mark.asyncio
    async def test_health_reports_each_backend(self, client, primary):
        """Test every backend appears with its role and readiness."""
        primary.ready = False

        data = (await client.get('/health')).json()

        assert data['backends'] == [
            {'name': 'primary', 'role': 'primary', 'ready': False, 'voices': ['default']},
            {'name': 'secondary', 'role': 'fallback', 'ready': True, 'voices': ['default']},
        ]
        assert data['modelLoaded'] is False
        assert data['availableVoices'] == ['default']

    @pytest.mark.asyncio
    async def test_health_reports_audio_directory(self, client, audio_dir):
        """Test the audio directory state is visible."""
        (audio_dir / 'left-over.wav').write_bytes(b'x')

        data = (await client.get('/health')).json()

        assert data['audioDirectory']['exists'] is True
        assert data['audioDirectory']['path'] == str(audio_dir)
        assert data['audioDirectory']['files'] == ['left-over.wav']

    @pytest.mark.asyncio
    async def test_health_reports_voices_directory(self, client, primary, voices_dir):
        """Test the voice prompt directory of the primary backend is visible."""
        primary.voices_dir = voices_dir
        (voices_dir / 'notes.txt').write_text('not a voice')

        data = (await client.get('/health')).json()

        assert data['voicesDirectory'] == {
            'path': str(voices_dir),
            'exists': True,
            'files': ['Custom_Voice.wav', 'Jerry_Seinfeld.wav'],
            'error': None,
        }

    @pytest.mark.asyncio
    async def test_health_reports_missing_voices_directory(self, client, primary, tmp_path):
        """Test a missing voice prompt directory is reported, not an error."""
        primary.voices_dir = tmp_path / 'missing'

        data = (await client.get('/health')).json()

        assert data['voicesDirectory']['exists'] is False
        assert data['voicesDirectory']['files'] == []

    @pytest.mark.asyncio
    async def test_health_counts_jobs(self, client, primary):
        """Test tracked and in-flight job counts."""
        primary.delay = 0.5
        await client.post('/api/tts', json={'text': 'Hello'})

        data = (await client.get('/health')).json()

        assert data['trackedJobs'] == 1
        assert data['activeJobs'] == 1


class TestServerConfiguration:
    """Tests for server configuration."""

    def test_default_policies(self):
        """Test request and retention defaults."""
        from ttsrelay import config

        assert config.MAX_TEXT_LENGTH == 500
        assert config.DEFAULT_VOICE == 'default'
        assert config.ARTIFACT_RETENTION_SECONDS == 300
        assert config.JOB_RETENTION_SECONDS == 3600
        assert config.SWEEP_INTERVAL_SECONDS == 3600
        assert config.FALLBACK_PROGRESS == 60

    def test_app_directories_configured(self):
        """Test audio and voices live under the data directory."""
        from ttsrelay.config import DATA_DIR, AUDIO_DIR, VOICES_DIR

        assert AUDIO_DIR.parent == DATA_DIR
        assert VOICES_DIR.parent == DATA_DIR
        assert AUDIO_DIR.name == 'audio'

    def test_env_bool_parsing(self, monkeypatch):
        """Test boolean environment flags."""
        from ttsrelay.config import _env_bool

        monkeypatch.setenv('TTS_FLAG', 'yes')
        assert _env_bool('TTS_FLAG', False) is True
        monkeypatch.setenv('TTS_FLAG', '0')
        assert _env_bool('TTS_FLAG', True) is False
        monkeypatch.setenv('TTS_FLAG', '')
        assert _env_bool('TTS_FLAG', True) is True

    def test_server_registers_routes(self):
        """Test the app exposes the relay endpoints."""
        from server import app

        paths = app.openapi()['paths']
        assert {'/api/tts', '/api/job/{job_id}', '/api/jobs', '/api/download/{job_id}', '/health'} <= set(paths)
        assert set(paths['/api/job/{job_id}']) == {'get', 'delete'}
        assert app.url_path_for('audio', path='x.wav') == '/audio/x.wav'
