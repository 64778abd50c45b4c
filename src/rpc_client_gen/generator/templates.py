"""Static sections of the generated TypeScript client module."""

CLIENT_CLASS_NAME = "RpcClient"

# Names declared by the static sections and the client class.
SHARED_DECLARATIONS = frozenset({
    "RequestOptions", "FetchFunction", "ApiResponse", "ApiError",
    "ApiClientOptions", "RequestInput", "ApiClient", CLIENT_CLASS_NAME,
})


def render_header() -> str:
    return """// ============================================================================
// Typed RPC client
// ============================================================================
// Generated by rpc-client-gen. Do not edit by hand; re-run the generator
// after changing controllers or the types they use."""


def render_shared_types() -> str:
    return """/**
 * Request options split into path params, query, body and headers.
 * A facet whose type argument is never cannot be supplied at all.
 */
export type RequestOptions<TParams = never, TQuery = never, TBody = never, THeaders = never> =
	([TParams] extends [never] ? { params?: never } : { params: TParams }) &
	([TQuery] extends [never] ? { query?: never } : { query?: TQuery }) &
	([TBody] extends [never] ? { body?: never } : { body: TBody }) &
	([THeaders] extends [never] ? { headers?: never } : { headers: THeaders })

/**
 * Custom fetch function type that matches the standard fetch API
 */
export type FetchFunction = (input: RequestInfo | URL, init?: RequestInit) => Promise<Response>

/**
 * API response wrapper
 */
export interface ApiResponse<T = any> {
	data: T
	message?: string
	success: boolean
}

/**
 * Error raised for every non-success HTTP status
 */
export class ApiError extends Error {
	constructor(
		public statusCode: number,
		message: string
	) {
		super(message)
		this.name = 'ApiError'
	}
}"""


def render_client_base() -> str:
    return """export interface ApiClientOptions {
	fetchFn?: FetchFunction
	defaultHeaders?: Record<string, string>
}

interface RequestInput {
	params?: unknown
	query?: object
	body?: unknown
	headers?: object
}

/**
 * Low-level client: default headers, bearer token and the shared request primitive
 */
export class ApiClient {
	private readonly baseUrl: string
	private readonly fetchFn: FetchFunction
	private defaultHeaders: Record<string, string>
	private authToken: string | undefined

	constructor(baseUrl: string, options: ApiClientOptions = {}) {
		this.baseUrl = baseUrl.replace(/\\/+$/, '')
		this.fetchFn = options.fetchFn ?? ((input, init) => fetch(input, init))
		this.defaultHeaders = { ...options.defaultHeaders }
	}

	setDefaultHeaders(headers: Record<string, string>): this {
		this.defaultHeaders = { ...this.defaultHeaders, ...headers }
		return this
	}

	setAuthToken(token: string | undefined): this {
		this.authToken = token
		return this
	}

	protected async request<T>(method: string, path: string, options: RequestInput = {}): Promise<ApiResponse<T>> {
		const headers: Record<string, string> = {
			...this.defaultHeaders,
			...(options.headers as Record<string, string> | undefined)
		}
		if (this.authToken) {
			headers['Authorization'] = `Bearer ${this.authToken}`
		}

		const init: RequestInit = { method, headers }
		if (options.body !== undefined) {
			headers['Content-Type'] = headers['Content-Type'] ?? 'application/json'
			init.body = JSON.stringify(options.body)
		}

		const response = await this.fetchFn(this.baseUrl + path + this.buildQuery(options.query), init)
		const payload: any = await response.json().catch(() => undefined)

		if (!response.ok) {
			const message =
				payload && typeof payload === 'object' && typeof payload.message === 'string'
					? payload.message
					: response.statusText || `Request failed with status ${response.status}`
			throw new ApiError(response.status, message)
		}

		return { data: payload as T, success: true }
	}

	private buildQuery(query?: object): string {
		if (!query) return ''
		const search = new URLSearchParams()
		for (const [key, value] of Object.entries(query)) {
			if (value === undefined || value === null) continue
			if (Array.isArray(value)) {
				for (const item of value) search.append(key, String(item))
			} else {
				search.append(key, String(value))
			}
		}
		const text = search.toString()
		return text ? `?${text}` : ''
	}
}"""
