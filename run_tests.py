#!/usr/bin/env python3
"""
매칭 서버 테스트 실행 스크립트

Usage:
    python run_tests.py                # 모든 테스트 실행
    python run_tests.py --unit         # 단위 테스트만 실행
    python run_tests.py --integration  # WebSocket 통합 테스트만 실행
    python run_tests.py --coverage     # 커버리지 포함하여 실행
    python run_tests.py --install      # 패키지와 테스트 의존성 설치 후 실행
"""

import argparse
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent


def run_command(cmd, description=""):
    """명령어 실행"""
    print(f"\n{'='*60}")
    print(f"🚀 {description}")
    print(f"{'='*60}")
    print(f"실행 명령어: {' '.join(cmd)}\n")

    try:
        subprocess.run(cmd, check=True, cwd=PROJECT_ROOT)
    except subprocess.CalledProcessError as e:
        print(f"\n❌ {description} 실패! (exit code: {e.returncode})")
        return False
    print(f"\n✅ {description} 성공!")
    return True


def pytest_command(target, *options):
    return [sys.executable, "-m", "pytest", target, *options]


def main():
    parser = argparse.ArgumentParser(description="매칭 서버 테스트 실행 스크립트")
    parser.add_argument("--unit", action="store_true", help="단위 테스트만 실행")
    parser.add_argument("--integration", action="store_true", help="통합 테스트만 실행")
    parser.add_argument("--coverage", action="store_true", help="커버리지 포함하여 실행")
    parser.add_argument("--quick", action="store_true", help="실패 시 즉시 중단")
    parser.add_argument("--install", action="store_true", help="의존성 설치")
    args = parser.parse_args()

    success = True

    if args.install:
        success &= run_command(
            [sys.executable, "-m", "pip", "install", "-e", ".[test]"],
            "패키지 및 테스트 의존성 설치",
        )

    if args.unit:
        success &= run_command(pytest_command("tests/unit/"), "단위 테스트 실행")
    elif args.integration:
        success &= run_command(pytest_command("tests/integration/"), "통합 테스트 실행")
    elif args.coverage:
        success &= run_command(
            pytest_command("tests/", "--cov=app", "--cov-report=term-missing", "--cov-report=html:htmlcov"),
            "커버리지 포함 테스트 실행",
        )
        if success:
            print("\n📊 커버리지 리포트가 htmlcov/index.html에 생성되었습니다.")
    elif args.quick:
        success &= run_command(pytest_command("tests/", "-x"), "빠른 테스트 실행 (실패 시 중단)")
    else:
        success &= run_command(pytest_command("tests/"), "전체 테스트 실행")

    print(f"\n{'='*60}")
    if success:
        print("🎉 모든 작업이 성공적으로 완료되었습니다!")
        print("✅ 매칭 서버가 올바르게 작동합니다.")
    else:
        print("💥 일부 작업이 실패했습니다.")
    print(f"{'='*60}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
