"""Main CLI entrypoint for scia."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

from .analysis import Analysis, Strategy
from .llm import LLMError, NoProvidersAvailable, ProviderKind, ProviderManager, RequestContext
from .llm.docker import DockerSetupError, is_ollama_accessible, setup_ollama_docker
from .log import configure_logging
from .nlp import DeploymentConfig, apply_config, default_plan_config, parse_config_from_prompt, parse_prompt
from .plan import build_deployment_plan, confirm_or_modify, extract_app_name
from .rules import RulesError, load_rules
from .settings import ConfigError, Settings, load_settings, validate_settings
from .strategy import StrategyResolver, suggest_optimizations, validate_deployment_requirements

logger = logging.getLogger(__name__)

STRATEGY_CHOICE = click.Choice([s.value for s in Strategy])


@click.group()
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Settings file (default: ~/.scia.yaml)')
@click.option('--rules', 'rules_path', type=click.Path(dir_okay=False), help='Deployment rules YAML file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def main(ctx, config_path, rules_path, verbose):
    """scia - deployment strategy decisions for analysed applications."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['rules_path'] = rules_path
    ctx.obj['verbose'] = verbose


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=2))


def _fail(message: str, hint: Optional[str] = None, code: int = 1) -> None:
    click.echo(f"❌ {message}", err=True)
    if hint:
        click.echo(f"💡 {hint}", err=True)
    sys.exit(code)


def _load_settings(ctx) -> Settings:
    try:
        settings = load_settings(ctx.obj.get('config_path'))
    except ConfigError as e:
        _fail(f"Invalid configuration: {e}", code=2)

    issues = validate_settings(settings)
    if issues:
        for issue in issues:
            click.echo(f"❌ {issue}", err=True)
        _fail("Configuration is invalid", hint="Fix ~/.scia.yaml or the SCIA_* environment variables", code=2)
    return settings


def _load_rules(ctx):
    try:
        return load_rules(ctx.obj.get('rules_path'))
    except RulesError as e:
        _fail(f"Failed to load rules: {e}")


def _load_analysis(path: str) -> Analysis:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as e:
        _fail(f"Failed to read analysis {path}: {e}")
    if not isinstance(data, dict):
        _fail(f"Analysis file {path} must contain a mapping")
    return Analysis.from_dict(data)


def _prepare_ollama(settings: Settings) -> None:
    """Start the Ollama container when configured and the server is unreachable."""
    ollama = settings.llm.ollama
    if not ollama.use_docker or is_ollama_accessible(ollama.url):
        return

    click.echo("🐳 Ollama is not reachable, starting it in Docker...", err=True)
    try:
        ollama.url = setup_ollama_docker(ollama.model, show_progress=True)
    except DockerSetupError as e:
        logger.warning(f"Docker setup failed: {e}")
        click.echo(f"⚠️  Docker setup failed: {e}", err=True)


def _build_manager(ctx, settings: Settings) -> ProviderManager:
    kinds = [settings.llm.provider, *settings.llm.fallbacks]
    if ProviderKind.OLLAMA.value in kinds:
        _prepare_ollama(settings)

    try:
        return ProviderManager.from_config(settings.to_provider_config(verbose=ctx.obj.get('verbose', False)))
    except ConfigError as e:
        _fail(f"Invalid configuration: {e}", code=2)
    except NoProvidersAvailable as e:
        _fail(str(e), hint="Configure an LLM provider or rerun with --no-llm")


def _extract_config(manager: Optional[ProviderManager], prompt: str, request_ctx: RequestContext,
                    forced_strategy: Optional[str] = None) -> DeploymentConfig:
    if manager is None:
        config = parse_prompt(prompt)
    else:
        config = parse_config_from_prompt(manager, prompt, ctx=request_ctx)
    if forced_strategy:
        config = replace(config, strategy=Strategy(forced_strategy))
    return config


@main.command()
@click.argument('prompt')
@click.option('--analysis', 'analysis_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Analysis document (JSON or YAML)')
@click.option('--strategy', 'forced_strategy', type=STRATEGY_CHOICE, help='Force a deployment strategy')
@click.option('--no-llm', is_flag=True, help='Use rules and heuristics only')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def decide(ctx, prompt, analysis_path, forced_strategy, no_llm, output_json):
    """Decide the deployment strategy for an analysed application."""
    settings = _load_settings(ctx)
    rules = _load_rules(ctx)
    analysis = _load_analysis(analysis_path)
    manager = None if no_llm else _build_manager(ctx, settings)
    request_ctx = RequestContext.background()

    try:
        config = _extract_config(manager, prompt, request_ctx, forced_strategy)
        decision = StrategyResolver(rules=rules, manager=manager).resolve(
            config.cleaned_prompt or prompt, analysis, parsed_config=config, ctx=request_ctx)
    except KeyboardInterrupt:
        request_ctx.cancel()
        _fail("Cancelled by user")
    except LLMError as e:
        _fail(f"Strategy decision failed: {e}")

    suggestions = suggest_optimizations(analysis, decision.strategy)
    warnings = validate_deployment_requirements(analysis, decision.strategy)

    if output_json:
        _json_output({**decision.to_dict(), 'suggestions': suggestions, 'warnings': warnings})
        return

    click.echo(f"🎯 Strategy: {decision.strategy.value}")
    click.echo(f"📝 Reason: {decision.reason}")
    click.echo(f"🔎 Decided by: {decision.tier.value}" + (f" ({decision.rule_name})" if decision.rule_name else ""))
    if decision.instance_type:
        click.echo(f"🖥️  Instance type: {decision.instance_type}")
    if warnings:
        click.echo("\n⚠️  Warnings:")
        for warning in warnings:
            click.echo(f"  • {warning}")
    if suggestions:
        click.echo("\n💡 Suggestions:")
        for suggestion in suggestions:
            click.echo(f"  • {suggestion}")


@main.command()
@click.argument('prompt')
@click.option('--no-llm', is_flag=True, help='Use the deterministic parser only')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def parse(ctx, prompt, no_llm, output_json):
    """Extract deployment configuration from a request."""
    manager = None
    if not no_llm:
        manager = _build_manager(ctx, _load_settings(ctx))

    try:
        config = _extract_config(manager, prompt, RequestContext.background())
    except LLMError as e:
        _fail(f"Extraction failed: {e}")

    if output_json:
        _json_output({'config': config.to_dict(), 'cleaned_prompt': config.cleaned_prompt})
        return

    if config.is_empty():
        click.echo("No deployment parameters found")
        return
    click.echo("🔧 Extracted configuration:")
    for key, value in config.to_dict().items():
        click.echo(f"  • {key}: {value}")


@main.command()
@click.argument('prompt')
@click.option('--analysis', 'analysis_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Analysis document (JSON or YAML)')
@click.option('--repo', help='Repository URL or name (used for the application name)')
@click.option('--strategy', 'forced_strategy', type=STRATEGY_CHOICE, help='Force a deployment strategy')
@click.option('--yes', is_flag=True, help='Confirm the plan without prompting')
@click.option('--no-llm', is_flag=True, help='Use rules and heuristics only')
@click.pass_context
def plan(ctx, prompt, analysis_path, repo, forced_strategy, yes, no_llm):
    """Build a deployment plan and confirm or modify it interactively."""
    settings = _load_settings(ctx)
    rules = _load_rules(ctx)
    analysis = _load_analysis(analysis_path)
    manager = None if no_llm else _build_manager(ctx, settings)
    request_ctx = RequestContext.background()

    try:
        parsed = _extract_config(manager, prompt, request_ctx, forced_strategy)
        decision = StrategyResolver(rules=rules, manager=manager).resolve(
            parsed.cleaned_prompt or prompt, analysis, parsed_config=parsed, ctx=request_ctx)

        click.echo(f"🎯 Strategy: {decision.strategy.value} ({decision.reason})")

        config = default_plan_config(decision.strategy, region=settings.cloud.default_region)
        config = apply_config(config, DeploymentConfig(ec2_instance_type=decision.instance_type))
        config = apply_config(config, parsed)

        deployment_plan = build_deployment_plan(
            config.strategy, config.region, extract_app_name(repo or analysis.repo_url), analysis, config)
        result = confirm_or_modify(deployment_plan, analysis, config, manager=manager,
                                   auto_approve=yes, ctx=request_ctx)
    except (KeyboardInterrupt, click.Abort):
        request_ctx.cancel()
        _fail("Cancelled by user")
    except LLMError as e:
        _fail(f"Planning failed: {e}")

    if not result.confirmed:
        click.echo("❌ Deployment cancelled by user")
        sys.exit(1)

    click.echo(f"🚀 Plan confirmed: {result.plan.strategy.value} in {result.plan.region}")


@main.command()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def models(ctx, output_json):
    """List models from every reachable provider."""
    manager = _build_manager(ctx, _load_settings(ctx))
    available = manager.list_all_models(RequestContext.background())

    if output_json:
        _json_output({'providers': manager.names, 'models': [m.to_dict() for m in available]})
        return

    if not available:
        click.echo(f"No models available (providers: {', '.join(manager.names)})")
        return
    for model in available:
        click.echo(f"  • {model.provider}: {model.name} [{model.size}, {model.type}]")


@main.command()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def rules(ctx, output_json):
    """Show the loaded rules in evaluation order."""
    loaded = _load_rules(ctx)

    if output_json:
        _json_output({
            'version': loaded.version,
            'rules': [
                {'name': r.name, 'priority': r.priority, 'recommendation': r.recommendation.value, 'reason': r.reason}
                for r in loaded.rules
            ],
        })
        return

    click.echo(f"📚 Rules version {loaded.version or 'unversioned'}")
    for rule in loaded.rules:
        click.echo(f"  [{rule.priority:>3}] {rule.name} -> {rule.recommendation.value}")
        if rule.description:
            click.echo(f"        {rule.description}")


if __name__ == '__main__':
    main()
