"""Base language server manager: a JSON-RPC connection over a subprocess's stdio."""

import abc
import json
import logging
import os
import queue
import subprocess
import threading
from typing import Any, Dict, List, Optional, Tuple

from pygls.uris import from_fs_path, to_fs_path

REQUEST_TIMEOUT = 30


class BaseLanguageServerManager(abc.ABC):
    """Abstract base class for language server managers.

    Subclasses say how to launch the server; this class spawns it and speaks
    the Language Server Protocol with it.
    """

    def __init__(self, workspace_path: str):
        """Initialize the language server manager.

        Args:
            workspace_path: Path to the workspace directory.
        """
        self.workspace_path = os.path.abspath(workspace_path)
        self.logger = logging.getLogger(f"omnilsp.servers.{self.language}")
        self.server_process: Optional[subprocess.Popen] = None

        # LSP communication
        self.pending_responses: Dict[str, "queue.Queue[Dict[str, Any]]"] = {}
        self.next_request_id = 1
        self.id_lock = threading.Lock()
        self.reader_thread: Optional[threading.Thread] = None
        self.writer_thread: Optional[threading.Thread] = None
        self.write_queue: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()
        self.running = False
        self.initialization_options: Dict[str, Any] = {}

    @property
    @abc.abstractmethod
    def language(self) -> str:
        """Get the language managed by this server.

        Returns:
            The language name.
        """
        pass

    @abc.abstractmethod
    def launch_command(self) -> Tuple[str, List[str]]:
        """Return the executable and arguments used to spawn the server."""
        pass

    def can_launch(self) -> bool:
        """Check whether the server executable exists, without spawning it."""
        try:
            executable, _ = self.launch_command()
        except Exception as e:
            self.logger.debug(f"Cannot determine {self.language} server command: {e}")
            return False
        return os.path.isfile(executable)

    def is_running(self) -> bool:
        """Check if the language server is running.

        Returns:
            True if the server is running, False otherwise.
        """
        return self.server_process is not None and self.server_process.poll() is None

    def start(self) -> None:
        """Start the language server process."""
        if self.is_running():
            self.logger.info(f"{self.language} language server is already running")
            return

        executable, args = self.launch_command()
        command = [executable, *args]
        self.logger.info(f"Starting {self.language} language server with command: {' '.join(command)}")

        try:
            self.server_process = subprocess.Popen(
                command,
                cwd=self.workspace_path,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                bufsize=0
            )
        except OSError as e:
            self.logger.error(f"Failed to start {self.language} language server: {e}")
            raise

        self._start_lsp_communication()

    def stop(self) -> None:
        """Stop the language server process."""
        if not self.is_running():
            self.server_process = None
            return

        self._stop_lsp_communication()

        if self.server_process and self.server_process.poll() is None:
            self.logger.info(f"Stopping {self.language} language server")
            try:
                self.server_process.terminate()
                self.server_process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.logger.warning(f"{self.language} language server did not terminate, forcing kill")
                self.server_process.kill()

        self.server_process = None
        self.logger.info(f"{self.language} language server stopped")

    def _start_lsp_communication(self) -> None:
        """Start LSP communication threads."""
        self.running = True

        self.reader_thread = threading.Thread(
            target=self._lsp_reader,
            daemon=True,
            name=f"{self.language}-lsp-reader"
        )
        self.reader_thread.start()

        self.writer_thread = threading.Thread(
            target=self._lsp_writer,
            daemon=True,
            name=f"{self.language}-lsp-writer"
        )
        self.writer_thread.start()

        self._initialize_lsp_server()

    def _stop_lsp_communication(self) -> None:
        """Stop LSP communication threads."""
        self._send_shutdown_request()
        self.running = False
        self.write_queue.put(None)

        if self.reader_thread and self.reader_thread.is_alive():
            self.reader_thread.join(timeout=2)

        if self.writer_thread and self.writer_thread.is_alive():
            self.writer_thread.join(timeout=2)

    def _read_message(self, stream) -> Optional[Dict[str, Any]]:
        """Read one framed message, or return None at end of stream."""
        content_length = None
        while True:
            line = stream.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                break
            if line.lower().startswith(b"content-length:"):
                content_length = int(line.split(b":", 1)[1])

        if content_length is None:
            return {}

        # Unbuffered pipes may return short reads
        content = b""
        while len(content) < content_length:
            chunk = stream.read(content_length - len(content))
            if not chunk:
                return None
            content += chunk
        return json.loads(content.decode("utf-8"))

    def _lsp_reader(self) -> None:
        """Read responses from the LSP server."""
        stream = self.server_process.stdout if self.server_process else None
        if stream is None:
            self.logger.error("Cannot read from LSP server: server process or stdout is None")
            return

        while self.running:
            try:
                message = self._read_message(stream)
            except (OSError, ValueError) as e:
                self.logger.error(f"Error reading from LSP server: {e}")
                break

            if message is None:
                self.logger.info(f"{self.language} language server closed its output")
                break
            if message:
                self.logger.debug(f"Received LSP message: {message}")
                self._process_lsp_message(message)

    def _lsp_writer(self) -> None:
        """Write requests to the LSP server."""
        stream = self.server_process.stdin if self.server_process else None
        if stream is None:
            self.logger.error("Cannot write to LSP server: server process or stdin is None")
            return

        while True:
            message = self.write_queue.get()
            if message is None:
                break

            content = json.dumps(message).encode("utf-8")
            header = f"Content-Length: {len(content)}\r\n\r\n".encode()
            self.logger.debug(f"Sending LSP message: {message}")

            try:
                stream.write(header + content)
                stream.flush()
            except OSError as e:
                self.logger.error(f"Error writing to LSP server: {e}")
                break

    def _process_lsp_message(self, message: Dict[str, Any]) -> None:
        """Process a message from the LSP server.

        Args:
            message: The message from the LSP server.
        """
        if "id" in message and ("result" in message or "error" in message):
            request_id = str(message["id"])
            if request_id in self.pending_responses:
                self.pending_responses[request_id].put(message)
            else:
                self.logger.debug(f"Dropping response to unknown request {request_id}")

        elif "method" in message and "id" not in message:
            self._handle_notification(message)

    def _handle_notification(self, notification: Dict[str, Any]) -> None:
        """Handle a notification from the LSP server.

        Args:
            notification: The notification from the LSP server.
        """
        method = notification.get("method", "")

        if method in ("window/logMessage", "window/showMessage"):
            params = notification.get("params", {})
            message_type = params.get("type", 4)
            message = params.get("message", "")

            log_levels = {
                1: logging.ERROR,
                2: logging.WARNING,
                3: logging.INFO,
                4: logging.DEBUG
            }

            level = log_levels.get(message_type, logging.INFO)
            self.logger.log(level, f"LSP server: {message}")

    def _initialize_lsp_server(self) -> None:
        """Initialize the LSP server."""
        params = {
            "processId": os.getpid(),
            "rootPath": self.workspace_path,
            "rootUri": self._path_to_uri(self.workspace_path),
            "capabilities": {
                "textDocument": {
                    "synchronization": {
                        "didSave": True,
                        "willSave": True
                    },
                    "definition": {},
                    "references": {},
                    "publishDiagnostics": {}
                },
                "workspace": {
                    "workspaceFolders": True,
                    "didChangeConfiguration": {}
                }
            },
            "initializationOptions": self.initialization_options,
            "workspaceFolders": [
                {"uri": self._path_to_uri(self.workspace_path), "name": os.path.basename(self.workspace_path)}
            ],
        }

        response = self._send_request_sync("initialize", params)

        if response and "result" in response:
            self._send_notification("initialized", {})
            self.logger.info(f"Successfully initialized {self.language} LSP server")
        else:
            self.logger.error(f"Failed to initialize {self.language} LSP server")

    def _send_shutdown_request(self) -> None:
        """Send shutdown request to the LSP server."""
        response = self._send_request_sync("shutdown", None)

        if response and "result" in response:
            self._send_notification("exit", None)
            self.logger.info(f"Successfully shut down {self.language} LSP server")
        else:
            self.logger.error(f"Failed to shut down {self.language} LSP server")

    def _next_id(self) -> str:
        with self.id_lock:
            request_id = str(self.next_request_id)
            self.next_request_id += 1
        return request_id

    def _send_request_sync(
        self, method: str, params: Optional[Dict[str, Any]], timeout: float = REQUEST_TIMEOUT
    ) -> Dict[str, Any]:
        """Send a request to the LSP server and wait for the response.

        Args:
            method: The LSP method to call.
            params: Parameters for the method.
            timeout: Seconds to wait for the response.

        Returns:
            Dictionary containing the response, or an empty dictionary on timeout.
        """
        request_id = self._next_id()
        responses: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=1)
        self.pending_responses[request_id] = responses

        self.write_queue.put({
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params
        })

        try:
            return responses.get(timeout=timeout)
        except queue.Empty:
            self.logger.error(f"Timeout waiting for response to {method} request")
            return {}
        finally:
            self.pending_responses.pop(request_id, None)

    def _send_notification(self, method: str, params: Optional[Dict[str, Any]]) -> None:
        """Send a notification to the LSP server.

        Args:
            method: The LSP method to call.
            params: Parameters for the method.
        """
        self.write_queue.put({
            "jsonrpc": "2.0",
            "method": method,
            "params": params
        })

    def _uri_to_path(self, uri: str) -> str:
        return to_fs_path(uri) or uri

    def _path_to_uri(self, path: str) -> str:
        return from_fs_path(os.path.abspath(path)) or path

    def _locations(self, result: Any) -> List[Dict[str, Any]]:
        if isinstance(result, dict):
            result = [result]
        if not isinstance(result, list):
            return []

        locations = []
        for location in result:
            # LocationLink uses targetUri/targetRange
            uri = location.get("uri") or location.get("targetUri", "")
            range_data = location.get("range") or location.get("targetSelectionRange", {})
            locations.append({
                "path": self._uri_to_path(uri),
                "range": range_data
            })
        return locations

    def open_document(self, file_path: str) -> str:
        """Send didOpen for a file and return its URI."""
        with open(file_path, encoding="utf-8") as f:
            content = f.read()

        document_uri = self._path_to_uri(file_path)
        self._send_notification("textDocument/didOpen", {
            "textDocument": {
                "uri": document_uri,
                "languageId": self.language,
                "version": 1,
                "text": content
            }
        })
        return document_uri

    def get_definition(self, file_path: str, line: int, character: int) -> Dict[str, Any]:
        """Get definition for the symbol at the specified position.

        Args:
            file_path: Path to the file.
            line: Line number (0-indexed).
            character: Character position (0-indexed).

        Returns:
            Dictionary containing definition information.
        """
        self.logger.info(f"Getting definition in file: {file_path} at position {line}:{character}")

        if not self.is_running():
            self.start()

        params = {
            "textDocument": {
                "uri": self.open_document(file_path)
            },
            "position": {
                "line": line,
                "character": character
            }
        }

        response = self._send_request_sync("textDocument/definition", params)
        return {"locations": self._locations(response.get("result"))}

    def get_references(self, file_path: str, line: int, character: int) -> List[Dict[str, Any]]:
        """Get references for the symbol at the specified position.

        Args:
            file_path: Path to the file.
            line: Line number (0-indexed).
            character: Character position (0-indexed).

        Returns:
            List of dictionaries containing reference information.
        """
        self.logger.info(f"Getting references in file: {file_path} at position {line}:{character}")

        if not self.is_running():
            self.start()

        params = {
            "textDocument": {
                "uri": self.open_document(file_path)
            },
            "position": {
                "line": line,
                "character": character
            },
            "context": {
                "includeDeclaration": True
            }
        }

        response = self._send_request_sync("textDocument/references", params)
        return self._locations(response.get("result"))
