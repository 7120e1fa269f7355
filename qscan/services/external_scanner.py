"""외부 정적 분석 도구 실행기 — semgrep / bandit CLI 실행 및 JSON 결과 파싱

도구가 암호 사용을 어떻게 탐지하는지는 이 모듈의 관심사가 아니다.
도구의 JSON 출력을 VulnerabilityCreate 목록으로 변환하는 것까지만 담당한다.
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from qscan.schemas.vulnerability import VulnerabilityCreate

logger = logging.getLogger(__name__)

DEFAULT_SEMGREP_CONFIG = "auto"

# semgrep ERROR / WARNING / INFO, bandit HIGH / MEDIUM / LOW
_SEVERITY_MAP = {
    "ERROR": "high",
    "WARNING": "medium",
    "INFO": "low",
    "HIGH": "high",
    "MEDIUM": "medium",
    "LOW": "low",
    "UNDEFINED": "info",
}


@dataclass
class ScannerFinding:
    """도구별 출력을 공통 형태로 변환한 탐지 결과."""

    tool: str
    rule_id: str
    severity: str          # critical / high / medium / low / info
    file_path: str         # 클론 디렉토리 기준 상대 경로
    start_line: int
    end_line: int
    code_snippet: str
    message: str
    cwe: list[str] = field(default_factory=list)
    pqc_category: str | None = None

    def to_vulnerability(self) -> VulnerabilityCreate:
        """Vulnerability 저장용 입력으로 변환한다."""
        details = {"rule_id": self.rule_id}
        if self.cwe:
            details["cwe"] = self.cwe
        return VulnerabilityCreate(
            title=self.rule_id,
            description=self.message,
            severity=self.severity,
            file_path=self.file_path,
            start_line=self.start_line,
            end_line=self.end_line,
            code_snippet=self.code_snippet or None,
            pqc_category=self.pqc_category,
            detected_by=self.tool,
            details=details,
        )


def _map_severity(raw: str | None) -> str:
    return _SEVERITY_MAP.get((raw or "").upper(), "medium")


def _relative(path: str, base_dir: Path) -> str:
    try:
        return str(Path(path).relative_to(base_dir))
    except ValueError:
        return path


class ExternalScanner:
    """외부 스캐너 CLI를 subprocess로 실행한다.

    returncode 해석 (semgrep / bandit 공통):
    - 0: 탐지 없음
    - 1: 탐지 있음 (정상)
    - 2 이상: 도구 내부 에러
    """

    SUPPORTED_TOOLS = ("semgrep", "bandit")

    def __init__(self, timeout_seconds: int = 600) -> None:
        self._timeout = timeout_seconds

    def scan(
        self,
        tool: str,
        target_dir: Path,
        custom_rules: list[str] | None = None,
    ) -> list[ScannerFinding]:
        """지정한 도구로 대상 디렉토리를 스캔한다.

        Args:
            tool: 도구 이름 (semgrep / bandit)
            target_dir: 스캔할 소스코드 디렉토리
            custom_rules: semgrep 사용자 정의 규칙 (YAML 줄 단위)

        Returns:
            탐지 결과 목록

        Raises:
            ValueError: 지원하지 않는 도구일 때
            RuntimeError: 도구 미설치, 타임아웃, 내부 에러 시
        """
        if tool == "semgrep":
            return self._scan_semgrep(target_dir, custom_rules or [])
        if tool == "bandit":
            return self._scan_bandit(target_dir)
        raise ValueError(f"Unsupported scanner tool: {tool}")

    # ---- semgrep ----

    def _scan_semgrep(self, target_dir: Path, custom_rules: list[str]) -> list[ScannerFinding]:
        config = DEFAULT_SEMGREP_CONFIG
        if custom_rules:
            # 클론 디렉토리 바깥에 규칙 파일을 두어 스캔 대상에서 제외
            rules_path = target_dir.parent / f"{target_dir.name}-rules.yaml"
            rules_path.write_text("\n".join(custom_rules) + "\n", encoding="utf-8")
            config = str(rules_path)

        cmd = [
            "semgrep", "scan",
            "--config", config,
            "--json",
            "--quiet",
            "--max-target-bytes", "1000000",
            str(target_dir),
        ]
        raw = self._run_cli("semgrep", cmd)
        if raw.get("errors"):
            logger.warning(
                f"[ExternalScanner] semgrep 부분 에러 {len(raw['errors'])}건 — 부분 결과로 계속 진행"
            )
        return self.parse_semgrep(raw, target_dir)

    @staticmethod
    def parse_semgrep(output: dict, base_dir: Path) -> list[ScannerFinding]:
        """semgrep --json 출력을 ScannerFinding 목록으로 변환한다."""
        findings: list[ScannerFinding] = []
        for result in output.get("results", []):
            extra = result.get("extra", {})
            metadata = extra.get("metadata", {})
            cwe = metadata.get("cwe", [])
            if isinstance(cwe, str):
                cwe = [cwe]
            findings.append(
                ScannerFinding(
                    tool="semgrep",
                    rule_id=result["check_id"],
                    severity=_map_severity(extra.get("severity")),
                    file_path=_relative(result["path"], base_dir),
                    start_line=result["start"]["line"],
                    end_line=result["end"]["line"],
                    code_snippet=extra.get("lines", ""),
                    message=extra.get("message", ""),
                    cwe=list(cwe),
                    pqc_category=metadata.get("pqc_category"),
                )
            )
        return findings

    # ---- bandit ----

    def _scan_bandit(self, target_dir: Path) -> list[ScannerFinding]:
        cmd = ["bandit", "-r", str(target_dir), "-f", "json", "-q"]
        raw = self._run_cli("bandit", cmd)
        return self.parse_bandit(raw, target_dir)

    @staticmethod
    def parse_bandit(output: dict, base_dir: Path) -> list[ScannerFinding]:
        """bandit -f json 출력을 ScannerFinding 목록으로 변환한다."""
        findings: list[ScannerFinding] = []
        for result in output.get("results", []):
            line_range = result.get("line_range") or [result.get("line_number", 0)]
            cwe_info = result.get("issue_cwe") or {}
            cwe = [f"CWE-{cwe_info['id']}"] if cwe_info.get("id") else []
            findings.append(
                ScannerFinding(
                    tool="bandit",
                    rule_id=result.get("test_id", "bandit"),
                    severity=_map_severity(result.get("issue_severity")),
                    file_path=_relative(result["filename"], base_dir),
                    start_line=result.get("line_number", line_range[0]),
                    end_line=line_range[-1],
                    code_snippet=result.get("code", ""),
                    message=result.get("issue_text", ""),
                    cwe=cwe,
                )
            )
        return findings

    # ---- 공통 ----

    def _run_cli(self, tool: str, cmd: list[str]) -> dict:
        """CLI를 실행하고 JSON 결과를 반환한다.

        Raises:
            RuntimeError: 미설치, 타임아웃, 내부 에러 시
        """
        env = os.environ.copy()
        env["SEMGREP_SEND_METRICS"] = "off"
        env["SEMGREP_ENABLE_VERSION_CHECK"] = "0"

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise RuntimeError(f"{tool} timed out after {self._timeout}s") from e
        except FileNotFoundError as e:
            raise RuntimeError(f"{tool} is not installed") from e

        logger.debug(
            f"[ExternalScanner] {tool} returncode={result.returncode} "
            f"stdout_len={len(result.stdout)}"
        )

        output = result.stdout.strip()
        if not output:
            if result.returncode >= 2:
                raise RuntimeError(
                    f"{tool} failed (returncode={result.returncode}): {result.stderr.strip()[:300]}"
                )
            return {"results": [], "errors": []}

        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"{tool} produced non-JSON output: {output[:300]!r}") from e


def count_source_files(target_dir: Path) -> int:
    """.git 디렉토리를 제외한 파일 수"""
    total = 0
    for root, dirs, files in os.walk(target_dir):
        dirs[:] = [d for d in dirs if d != ".git"]
        total += len(files)
    return total
